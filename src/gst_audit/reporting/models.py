"""
Report data model.

Orders as the report sees them, the pivot schema built from the store's tax
classes, and the rows/table the aggregator produces.

Money is :class:`~decimal.Decimal` end to end.  Nothing is rounded until
:func:`format_amount` turns a value into a cell string, so sums of many
line taxes do not drift.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from gst_audit.core.period import Period

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")

FIXED_COLUMNS: tuple[str, ...] = (
    "Order Date",
    "Order ID",
    "Invoice Number",
    "Order Status",
    "Name",
    "City",
    "Pincode",
    "Product Name",
    "HSN Code",
    "Price (Inc Tax)",
    "Qty",
    "Total (Inc Tax)",
    "Total Price (Excl Tax)",
)

NO_RATES_PLACEHOLDER = "-"
SHIPPING_LABEL = "Shipping"


def format_amount(value: Decimal) -> str:
    """Round half-up to 2 places: ``Decimal("2.005")`` → ``"2.01"``."""
    return str(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


# ── Tax schema ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TaxRate:
    """One configured rate inside a tax class."""

    rate_id: int
    label: str = ""
    percent: str = ""

    @property
    def header_label(self) -> str:
        """``"CGST (9%)"``, or ``"Rate"`` when the rate has no label."""
        label = self.label or "Rate"
        if self.percent != "":
            return f"{label} ({self.percent}%)"
        return label


TaxClassRates = dict[str, list[TaxRate]]
"""Ordered mapping of class name → rates, "Standard" first."""


@dataclass(frozen=True)
class TaxColumnGroup:
    """Columns for one tax class: one per rate, or one placeholder."""

    class_name: str
    rates: tuple[TaxRate, ...] = ()

    @property
    def width(self) -> int:
        return max(1, len(self.rates))

    @property
    def is_placeholder(self) -> bool:
        return not self.rates


@dataclass(frozen=True)
class PivotSchema:
    """Ordered tax column layout for one report build.

    Computed once per build and used for both the header rows and cell
    placement, so headers and data can never disagree.
    """

    groups: tuple[TaxColumnGroup, ...] = ()

    @classmethod
    def from_tax_classes(cls, classes: TaxClassRates) -> PivotSchema:
        return cls(tuple(TaxColumnGroup(name, tuple(rates)) for name, rates in classes.items()))

    @property
    def tax_column_count(self) -> int:
        return sum(group.width for group in self.groups)

    @property
    def column_count(self) -> int:
        return len(FIXED_COLUMNS) + self.tax_column_count

    @property
    def rate_ids(self) -> frozenset[int]:
        return frozenset(rate.rate_id for group in self.groups for rate in group.rates)

    def header_rows(self) -> tuple[list[str], list[str]]:
        """Class names (spanning their rates), then rate labels."""
        first = list(FIXED_COLUMNS)
        second = [""] * len(FIXED_COLUMNS)
        for group in self.groups:
            first.append(group.class_name)
            first.extend([""] * (group.width - 1))
            if group.is_placeholder:
                second.append(NO_RATES_PLACEHOLDER)
            else:
                second.extend(rate.header_label for rate in group.rates)
        return first, second

    def tax_cells(self, amounts: dict[int, Decimal]) -> list[str]:
        """Cells for the tax columns of one row.

        A rate with no amount, or one that rounds to zero, is ``""`` so
        "not applicable" never reads as a taxed zero.
        """
        cells: list[str] = []
        for group in self.groups:
            if group.is_placeholder:
                cells.append(NO_RATES_PLACEHOLDER)
                continue
            for rate in group.rates:
                amount = amounts.get(rate.rate_id)
                rounded = amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP) if amount is not None else None
                cells.append(str(rounded) if rounded else "")
        return cells


# ── Orders ───────────────────────────────────────────────────────────────


@dataclass
class LineItem:
    """A product line on an order."""

    item_id: int
    name: str
    product_id: int | None
    variation_id: int | None = None
    quantity: int = 1
    total: Decimal = ZERO
    taxes: dict[int, Decimal] = field(default_factory=dict)

    @property
    def tax_total(self) -> Decimal:
        return sum(self.taxes.values(), ZERO)

    @property
    def unit_price_inc_tax(self) -> Decimal:
        gross = self.total + self.tax_total
        if self.quantity:
            return gross / self.quantity
        return gross


@dataclass
class ShippingItem:
    """A shipping line on an order."""

    item_id: int
    name: str = SHIPPING_LABEL
    total: Decimal = ZERO
    taxes: dict[int, Decimal] = field(default_factory=dict)

    @property
    def tax_total(self) -> Decimal:
        return sum(self.taxes.values(), ZERO)


@dataclass
class Order:
    """An order with its product and shipping lines."""

    order_id: int
    created_at: datetime
    status: str
    invoice_number: str = ""
    first_name: str = ""
    last_name: str = ""
    city: str = ""
    postcode: str = ""
    line_items: list[LineItem] = field(default_factory=list)
    shipping_items: list[ShippingItem] = field(default_factory=list)

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ── Report output ────────────────────────────────────────────────────────


@dataclass
class ReportRow:
    """One report line: a product line, or an order's shipping aggregate."""

    order_date: str
    order_id: int
    invoice_number: str
    status: str
    name: str
    city: str
    pincode: str
    product_name: str
    hsn_code: str
    price_inc_tax: Decimal
    quantity: int
    total_inc_tax: Decimal
    total_excl_tax: Decimal
    taxes: dict[int, Decimal] = field(default_factory=dict)
    is_shipping: bool = False

    def cells(self, schema: PivotSchema) -> list[str]:
        """All cells as strings, fixed columns first."""
        return [
            self.order_date,
            str(self.order_id),
            self.invoice_number,
            self.status,
            self.name,
            self.city,
            self.pincode,
            self.product_name,
            self.hsn_code,
            format_amount(self.price_inc_tax),
            str(self.quantity),
            format_amount(self.total_inc_tax),
            format_amount(self.total_excl_tax),
            *schema.tax_cells(self.taxes),
        ]


@dataclass
class ReportTable:
    """Rows for a period plus the schema that lays them out."""

    period: Period
    schema: PivotSchema
    rows: list[ReportRow] = field(default_factory=list)
    order_count: int = 0

    def header_rows(self) -> tuple[list[str], list[str]]:
        return self.schema.header_rows()

    def data_rows(self) -> list[list[str]]:
        return [row.cells(self.schema) for row in self.rows]

    @property
    def filename(self) -> str:
        return f"gst-audit-export-{self.period}.xlsx"


@dataclass
class ReportPage:
    """One page of the month preview."""

    period: Period
    header_rows: tuple[list[str], list[str]]
    rows: list[list[str]]
    total_orders: int
    page: int
    per_page: int
    pages: int

    def to_dict(self) -> dict:
        return {
            "period": str(self.period),
            "header_rows": [list(r) for r in self.header_rows],
            "rows": self.rows,
            "total_orders": self.total_orders,
            "page": self.page,
            "per_page": self.per_page,
            "pages": self.pages,
        }


__all__ = [
    "FIXED_COLUMNS",
    "NO_RATES_PLACEHOLDER",
    "SHIPPING_LABEL",
    "format_amount",
    "TaxRate",
    "TaxClassRates",
    "TaxColumnGroup",
    "PivotSchema",
    "LineItem",
    "ShippingItem",
    "Order",
    "ReportRow",
    "ReportTable",
    "ReportPage",
]
