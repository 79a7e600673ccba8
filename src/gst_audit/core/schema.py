"""
Database schema.

Two groups of tables:

- service state: settings, send marker, access keys, access logs
- commerce mirror: tax classes/rates, products, orders and their items,
  read by the bundled report sources

Every statement is ``CREATE ... IF NOT EXISTS`` so ``create_core_tables``
can run on every start.
"""

from __future__ import annotations

from typing import Any

CORE_DDL: dict[str, str] = {
    "settings": """
        CREATE TABLE IF NOT EXISTS gst_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "send_marker": """
        CREATE TABLE IF NOT EXISTS gst_send_marker (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            period TEXT,
            sent_at TEXT,
            claim_period TEXT,
            claimed_by TEXT,
            claimed_at TEXT,
            claim_expires_at TEXT
        )
    """,
    "access_keys": """
        CREATE TABLE IF NOT EXISTS gst_access_keys (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            key_value TEXT NOT NULL UNIQUE,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            deactivated_at TEXT
        )
    """,
    # At most one active key, enforced by the database
    "access_keys_single_active": """
        CREATE UNIQUE INDEX IF NOT EXISTS idx_gst_access_keys_single_active
        ON gst_access_keys (is_active) WHERE is_active = 1
    """,
    # key_id is a plain reference: logs outlive the key they name
    "access_logs": """
        CREATE TABLE IF NOT EXISTS gst_access_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            key_id INTEGER,
            created_at TEXT NOT NULL,
            ip_address TEXT NOT NULL DEFAULT '',
            user_agent TEXT NOT NULL DEFAULT '',
            browser TEXT NOT NULL DEFAULT '',
            os TEXT NOT NULL DEFAULT '',
            location TEXT NOT NULL DEFAULT '',
            success INTEGER NOT NULL DEFAULT 0,
            error_message TEXT NOT NULL DEFAULT ''
        )
    """,
    "tax_classes": """
        CREATE TABLE IF NOT EXISTS gst_tax_classes (
            slug TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """,
    "tax_rates": """
        CREATE TABLE IF NOT EXISTS gst_tax_rates (
            rate_id INTEGER PRIMARY KEY,
            class_slug TEXT NOT NULL DEFAULT '',
            label TEXT NOT NULL DEFAULT '',
            percent TEXT NOT NULL DEFAULT '',
            rate_order INTEGER NOT NULL DEFAULT 0,
            priority INTEGER NOT NULL DEFAULT 1
        )
    """,
    "products": """
        CREATE TABLE IF NOT EXISTS gst_products (
            product_id INTEGER PRIMARY KEY,
            parent_id INTEGER,
            name TEXT NOT NULL,
            sku TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'publish',
            hsn_code TEXT NOT NULL DEFAULT ''
        )
    """,
    "orders": """
        CREATE TABLE IF NOT EXISTS gst_orders (
            order_id INTEGER PRIMARY KEY,
            created_at TEXT NOT NULL,
            status TEXT NOT NULL,
            invoice_number TEXT NOT NULL DEFAULT '',
            billing_first_name TEXT NOT NULL DEFAULT '',
            billing_last_name TEXT NOT NULL DEFAULT '',
            billing_city TEXT NOT NULL DEFAULT '',
            billing_postcode TEXT NOT NULL DEFAULT ''
        )
    """,
    "orders_created_at": """
        CREATE INDEX IF NOT EXISTS idx_gst_orders_created_at ON gst_orders (created_at)
    """,
    "order_items": """
        CREATE TABLE IF NOT EXISTS gst_order_items (
            item_id INTEGER PRIMARY KEY,
            order_id INTEGER NOT NULL,
            item_type TEXT NOT NULL DEFAULT 'line_item',
            name TEXT NOT NULL DEFAULT '',
            product_id INTEGER,
            variation_id INTEGER,
            quantity INTEGER NOT NULL DEFAULT 1,
            total TEXT NOT NULL DEFAULT '0'
        )
    """,
    "order_item_taxes": """
        CREATE TABLE IF NOT EXISTS gst_order_item_taxes (
            item_id INTEGER NOT NULL,
            rate_id INTEGER NOT NULL,
            amount TEXT NOT NULL DEFAULT '0',
            PRIMARY KEY (item_id, rate_id)
        )
    """,
}


def create_core_tables(conn: Any) -> None:
    """Create all tables and indexes (idempotent)."""
    for ddl in CORE_DDL.values():
        conn.execute(ddl)
    conn.commit()


__all__ = ["CORE_DDL", "create_core_tables"]
