"""
Tax pivot aggregation.

:class:`ReportAggregator` turns a period's orders into a
:class:`~gst_audit.reporting.models.ReportTable`:

::

    fixed columns (13)            | Standard        | GST             | Exempt
                                  | -               | CGST (9%) | ... | -
    ------------------------------+-----------------+-----------+-----+------
    one row per line item         |                 | 9.00      |     | -
    one "Shipping" row per order  |                 | 4.50      |     | -
    (only if shipping is nonzero) |

The tax layout comes from the tax schema source, fetched once per build.
Each line's per-rate taxes are placed by rate id; rates the schema does not
know are ignored for placement but still count toward the gross price.
"""

from __future__ import annotations

from decimal import Decimal

from gst_audit.core.logging import get_logger
from gst_audit.core.pagination import clamp_page, clamp_per_page, page_count
from gst_audit.core.period import Period
from gst_audit.reporting.models import (
    SHIPPING_LABEL,
    ZERO,
    Order,
    PivotSchema,
    ReportPage,
    ReportRow,
    ReportTable,
)
from gst_audit.reporting.sources import (
    REPORT_STATUSES,
    ClassificationResolver,
    OrderSource,
    TaxSchemaSource,
)

logger = get_logger(__name__)


class ReportAggregator:
    """Build pivoted GST report tables from orders."""

    def __init__(
        self,
        orders: OrderSource,
        tax_schema: TaxSchemaSource,
        classifier: ClassificationResolver,
        statuses: tuple[str, ...] = REPORT_STATUSES,
    ):
        self._orders = orders
        self._tax_schema = tax_schema
        self._classifier = classifier
        self._statuses = statuses

    def schema(self) -> PivotSchema:
        return PivotSchema.from_tax_classes(self._tax_schema.list_tax_classes_and_rates())

    def build(self, period: Period) -> ReportTable:
        """All rows for *period* (first day 00:00:00 to last day 23:59:59)."""
        schema = self.schema()
        orders = self._orders.fetch_orders(period.start(), period.end(), self._statuses)
        rows = [row for order in orders for row in self.rows_for_order(order, schema)]
        logger.info(
            "report.built",
            period=str(period),
            orders=len(orders),
            rows=len(rows),
            tax_columns=schema.tax_column_count,
        )
        return ReportTable(period=period, schema=schema, rows=rows, order_count=len(orders))

    def preview(self, period: Period, page: object = 1, per_page: object = None) -> ReportPage:
        """One page of orders for *period*, rendered as cell strings."""
        page_no = clamp_page(page)
        size = clamp_per_page(per_page)
        schema = self.schema()
        start, end = period.start(), period.end()

        total = self._orders.count_orders(start, end, self._statuses)
        orders = self._orders.fetch_orders(
            start, end, self._statuses, limit=size, offset=(page_no - 1) * size
        )
        rows = [row.cells(schema) for order in orders for row in self.rows_for_order(order, schema)]
        return ReportPage(
            period=period,
            header_rows=schema.header_rows(),
            rows=rows,
            total_orders=total,
            page=page_no,
            per_page=size,
            pages=page_count(total, size),
        )

    def rows_for_order(self, order: Order, schema: PivotSchema) -> list[ReportRow]:
        """Product rows for *order*, then its shipping row if any."""
        known = schema.rate_ids
        common = {
            "order_date": order.created_at.strftime("%Y-%m-%d"),
            "order_id": order.order_id,
            "invoice_number": order.invoice_number,
            "status": order.status,
            "name": order.customer_name,
            "city": order.city,
            "pincode": order.postcode,
        }

        rows: list[ReportRow] = []
        for item in order.line_items:
            price = item.unit_price_inc_tax
            rows.append(
                ReportRow(
                    **common,
                    product_name=item.name,
                    hsn_code=self._classifier.resolve_code(item.product_id, item.variation_id),
                    price_inc_tax=price,
                    quantity=item.quantity,
                    total_inc_tax=price * item.quantity,
                    total_excl_tax=item.total,
                    taxes={rid: amt for rid, amt in item.taxes.items() if rid in known},
                )
            )

        shipping = self._shipping_row(order, common, known)
        if shipping is not None:
            rows.append(shipping)
        return rows

    @staticmethod
    def _shipping_row(order: Order, common: dict, known: frozenset[int]) -> ReportRow | None:
        total = ZERO
        tax = ZERO
        taxes: dict[int, Decimal] = {}
        for item in order.shipping_items:
            total += item.total
            tax += item.tax_total
            for rate_id, amount in item.taxes.items():
                if rate_id in known:
                    taxes[rate_id] = taxes.get(rate_id, ZERO) + amount

        if total == ZERO and tax == ZERO:
            return None

        gross = total + tax
        return ReportRow(
            **common,
            product_name=SHIPPING_LABEL,
            hsn_code="",
            price_inc_tax=gross,
            quantity=1,
            total_inc_tax=gross,
            total_excl_tax=total,
            taxes=taxes,
            is_shipping=True,
        )


__all__ = ["ReportAggregator"]
