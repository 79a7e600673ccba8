"""
Report data sources.

The aggregator depends only on the three protocols below.  The ``Sql*``
classes implement them over the local commerce mirror tables created by
:mod:`gst_audit.core.schema`; a deployment fed from another system only
needs to provide objects of the same shape.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Protocol, runtime_checkable

from gst_audit.core.cache import TTLCache
from gst_audit.core.dialect import Dialect, SQLiteDialect
from gst_audit.core.errors import StorageError
from gst_audit.core.logging import get_logger
from gst_audit.core.protocols import Connection
from gst_audit.reporting.models import LineItem, Order, ShippingItem, TaxClassRates, TaxRate

logger = get_logger(__name__)

REPORT_STATUSES: tuple[str, ...] = ("completed", "processing")
STANDARD_CLASS = "Standard"

_TS_FORMAT = "%Y-%m-%d %H:%M:%S"


def _bounds(start: datetime, end: datetime) -> tuple[str, str]:
    """Inclusive start and exclusive upper bound covering the whole of *end*'s second.

    Stored timestamps may carry fractions (``23:59:59.500``), which compare
    greater than ``23:59:59`` as text.
    """
    upper = end.replace(microsecond=0) + timedelta(seconds=1)
    return start.strftime(_TS_FORMAT), upper.strftime(_TS_FORMAT)


@runtime_checkable
class OrderSource(Protocol):
    """Orders in an inclusive date range, filtered by status."""

    def fetch_orders(
        self,
        start: datetime,
        end: datetime,
        statuses: Iterable[str],
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Order]: ...

    def count_orders(self, start: datetime, end: datetime, statuses: Iterable[str]) -> int: ...


@runtime_checkable
class TaxSchemaSource(Protocol):
    """The store's tax classes and their rates, in display order."""

    def list_tax_classes_and_rates(self) -> TaxClassRates: ...


@runtime_checkable
class ClassificationResolver(Protocol):
    """Per-product classification (HSN) code lookup."""

    def resolve_code(self, product_id: int | None, variant_id: int | None = None) -> str: ...


def to_decimal(value: object) -> Decimal:
    """Parse a stored amount; empty or garbage becomes zero."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning("source.bad_amount", value=str(value))
        return Decimal("0")


class SqlOrderSource:
    """Orders from ``gst_orders`` / ``gst_order_items`` / ``gst_order_item_taxes``."""

    def __init__(self, conn: Connection, dialect: Dialect | None = None):
        self._conn = conn
        self._dialect = dialect or SQLiteDialect()

    def _where(self, statuses: tuple[str, ...]) -> str:
        ph = self._dialect.placeholders(len(statuses))
        p = self._dialect.placeholder(0)
        return f"created_at >= {p} AND created_at < {p} AND status IN ({ph})"

    def count_orders(self, start: datetime, end: datetime, statuses: Iterable[str]) -> int:
        statuses = tuple(statuses)
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM gst_orders WHERE {self._where(statuses)}",
            (*_bounds(start, end), *statuses),
        ).fetchone()
        return int(row[0]) if row else 0

    def fetch_orders(
        self,
        start: datetime,
        end: datetime,
        statuses: Iterable[str],
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Order]:
        statuses = tuple(statuses)
        sql = f"""
            SELECT order_id, created_at, status, invoice_number, billing_first_name,
                   billing_last_name, billing_city, billing_postcode
            FROM gst_orders
            WHERE {self._where(statuses)}
            ORDER BY created_at, order_id
        """
        params: tuple = (*_bounds(start, end), *statuses)
        if limit is not None:
            p = self._dialect.placeholder(0)
            sql += f" LIMIT {p} OFFSET {p}"
            params = (*params, limit, offset)

        try:
            rows = self._conn.execute(sql, params).fetchall()
        except Exception as e:
            raise StorageError("Could not read orders", cause=e) from e

        orders = [
            Order(
                order_id=int(r[0]),
                created_at=datetime.strptime(r[1][:19], _TS_FORMAT),
                status=r[2],
                invoice_number=r[3] or "",
                first_name=r[4] or "",
                last_name=r[5] or "",
                city=r[6] or "",
                postcode=r[7] or "",
            )
            for r in rows
        ]
        if orders:
            self._attach_items(orders)
        return orders

    def _attach_items(self, orders: list[Order]) -> None:
        by_id = {order.order_id: order for order in orders}
        ph = self._dialect.placeholders(len(by_id))
        ids = tuple(by_id)

        taxes: dict[int, dict[int, Decimal]] = {}
        for item_id, rate_id, amount in self._conn.execute(
            f"""
            SELECT t.item_id, t.rate_id, t.amount
            FROM gst_order_item_taxes t
            JOIN gst_order_items i ON i.item_id = t.item_id
            WHERE i.order_id IN ({ph})
            """,
            ids,
        ).fetchall():
            taxes.setdefault(int(item_id), {})[int(rate_id)] = to_decimal(amount)

        for r in self._conn.execute(
            f"""
            SELECT item_id, order_id, item_type, name, product_id, variation_id, quantity, total
            FROM gst_order_items
            WHERE order_id IN ({ph})
            ORDER BY order_id, item_id
            """,
            ids,
        ).fetchall():
            item_id, order_id, item_type = int(r[0]), int(r[1]), r[2]
            item_taxes = taxes.get(item_id, {})
            order = by_id[order_id]
            if item_type == "shipping":
                order.shipping_items.append(
                    ShippingItem(item_id=item_id, name=r[3] or "Shipping", total=to_decimal(r[7]), taxes=item_taxes)
                )
            elif item_type == "line_item":
                order.line_items.append(
                    LineItem(
                        item_id=item_id,
                        name=r[3] or "",
                        product_id=r[4],
                        variation_id=r[5] or None,
                        quantity=int(r[6] or 0),
                        total=to_decimal(r[7]),
                        taxes=item_taxes,
                    )
                )


class SqlTaxSchemaSource:
    """Tax classes from ``gst_tax_classes`` with rates from ``gst_tax_rates``.

    "Standard" (slug ``""``) always comes first; other classes follow in
    ``sort_order`` then name order.  Rates are ordered by
    ``(rate_order, priority, rate_id)``.
    """

    def __init__(self, conn: Connection):
        self._conn = conn

    def list_tax_classes_and_rates(self) -> TaxClassRates:
        classes: list[tuple[str, str]] = [(STANDARD_CLASS, "")]
        for slug, name in self._conn.execute(
            "SELECT slug, name FROM gst_tax_classes WHERE slug <> '' ORDER BY sort_order, name"
        ).fetchall():
            classes.append((name, slug))

        rates_by_slug: dict[str, list[TaxRate]] = {}
        for rate_id, slug, label, percent in self._conn.execute(
            "SELECT rate_id, class_slug, label, percent FROM gst_tax_rates ORDER BY rate_order, priority, rate_id"
        ).fetchall():
            rates_by_slug.setdefault(slug or "", []).append(
                TaxRate(rate_id=int(rate_id), label=label or "", percent=_format_percent(percent))
            )

        return {name: rates_by_slug.get(slug, []) for name, slug in classes}


def _format_percent(value: object) -> str:
    """``"18.0000"`` → ``"18"``, ``"2.5000"`` → ``"2.5"``, blank stays blank."""
    if value is None or str(value).strip() == "":
        return ""
    try:
        number = Decimal(str(value)).normalize()
    except InvalidOperation:
        return str(value)
    return format(number, "f")


class CachedTaxSchemaSource:
    """Wrap a :class:`TaxSchemaSource` with a time-based cache.

    Tax classes change rarely, so a report build reuses the schema for up
    to ``ttl_seconds``.  There is no write-through: an edited rate shows up
    once the entry expires (or after :meth:`invalidate`).
    """

    CACHE_KEY = "tax_classes_and_rates"

    def __init__(self, source: TaxSchemaSource, cache: TTLCache | None = None, ttl_seconds: float = 3600):
        self._source = source
        self._cache = cache or TTLCache(default_ttl_seconds=ttl_seconds)
        self._ttl = ttl_seconds

    def list_tax_classes_and_rates(self) -> TaxClassRates:
        return self._cache.get_or_load(
            self.CACHE_KEY,
            self._source.list_tax_classes_and_rates,
            ttl_seconds=self._ttl,
        )

    def invalidate(self) -> None:
        self._cache.delete(self.CACHE_KEY)


class SqlClassificationResolver:
    """HSN codes from ``gst_products``, parent product first.

    For a variant line the parent product's code wins when both have one;
    the variant's own code is the fallback.  A simple product resolves to
    its own code.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None):
        self._conn = conn
        self._dialect = dialect or SQLiteDialect()

    def _lookup(self, product_id: int | None) -> tuple[str, int | None]:
        if not product_id:
            return "", None
        p = self._dialect.placeholder(0)
        row = self._conn.execute(
            f"SELECT hsn_code, parent_id FROM gst_products WHERE product_id = {p}", (product_id,)
        ).fetchone()
        if row is None:
            return "", None
        return (row[0] or "").strip(), row[1] or None

    def resolve_code(self, product_id: int | None, variant_id: int | None = None) -> str:
        own_code, parent_id = self._lookup(product_id)
        if variant_id is None and parent_id:
            # a variation referenced directly: look at its parent first
            parent_code, _ = self._lookup(parent_id)
            return parent_code or own_code
        if own_code:
            return own_code
        variant_code, _ = self._lookup(variant_id)
        return variant_code


__all__ = [
    "REPORT_STATUSES",
    "OrderSource",
    "TaxSchemaSource",
    "ClassificationResolver",
    "SqlOrderSource",
    "SqlTaxSchemaSource",
    "CachedTaxSchemaSource",
    "SqlClassificationResolver",
    "to_decimal",
]
