"""Database operations."""

from __future__ import annotations

from typing import Any

from gst_audit.core.schema import CORE_DDL, create_core_tables
from gst_audit.ops.context import OperationContext
from gst_audit.ops.result import OperationResult, start_timer


def initialize_database(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    """Create all tables and indexes (idempotent)."""
    timer = start_timer()
    create_core_tables(ctx.conn)
    tables = [name for name, ddl in CORE_DDL.items() if "CREATE TABLE" in ddl]
    return OperationResult.ok({"tables": tables, "initialized": True}, elapsed_ms=timer())


def table_counts(ctx: OperationContext) -> OperationResult[list[dict[str, Any]]]:
    """Row counts for every table."""
    timer = start_timer()
    counts = []
    for name, ddl in CORE_DDL.items():
        if "CREATE TABLE" not in ddl:
            continue
        table = f"gst_{name}"
        row = ctx.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        counts.append({"table": table, "rows": int(row[0])})
    return OperationResult.ok(counts, elapsed_ms=timer())


__all__ = ["initialize_database", "table_counts"]
