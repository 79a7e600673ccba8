"""Tests for the GST pivot aggregation."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from gst_audit.core.period import Period
from gst_audit.reporting.aggregator import ReportAggregator
from gst_audit.reporting.models import (
    FIXED_COLUMNS,
    LineItem,
    Order,
    ShippingItem,
    TaxRate,
)

FEB = Period(2024, 2)
TAX = len(FIXED_COLUMNS)  # index of the first tax column


class FakeTaxSchema:
    def __init__(self, classes):
        self.classes = classes

    def list_tax_classes_and_rates(self):
        return self.classes


class FakeOrders:
    def __init__(self, orders):
        self.orders = orders

    def fetch_orders(self, start, end, statuses, *, limit=None, offset=0):
        matched = [o for o in self.orders if start <= o.created_at <= end and o.status in statuses]
        if limit is not None:
            matched = matched[offset : offset + limit]
        return matched

    def count_orders(self, start, end, statuses):
        return len(self.fetch_orders(start, end, statuses))


class FakeClassifier:
    def __init__(self, codes=None):
        self.codes = codes or {}

    def resolve_code(self, product_id, variant_id=None):
        return self.codes.get(product_id, "")


def _gst_5_18_exempt() -> FakeTaxSchema:
    return FakeTaxSchema(
        {
            "GST": [TaxRate(1, "GST", "5"), TaxRate(2, "GST", "18")],
            "Exempt": [],
        }
    )


class TestPivotLayout:
    def test_gst_with_two_rates_and_exempt_placeholder(self):
        order = Order(
            order_id=1,
            created_at=datetime(2024, 2, 3, 11, 0),
            status="completed",
            line_items=[
                LineItem(1, "Saree", 5, quantity=1, total=Decimal("1000.00"), taxes={1: Decimal("50.00")}),
                LineItem(2, "Watch", 6, quantity=1, total=Decimal("500.00"), taxes={2: Decimal("90.00"), 1: Decimal("0")}),
            ],
        )
        aggregator = ReportAggregator(FakeOrders([order]), _gst_5_18_exempt(), FakeClassifier({5: "5007"}))
        table = aggregator.build(FEB)

        assert table.schema.tax_column_count == 3
        top, sub = table.header_rows()
        assert top[TAX:] == ["GST", "", "Exempt"]
        assert sub[TAX:] == ["GST (5%)", "GST (18%)", "-"]
        assert sub[:TAX] == [""] * TAX

        saree, watch = table.data_rows()
        assert saree[TAX:] == ["50.00", "", "-"]
        assert watch[TAX:] == ["", "90.00", "-"]
        assert saree[8] == "5007"
        assert watch[8] == ""

    def test_class_without_label_uses_rate(self):
        schema = FakeTaxSchema({"Standard": [TaxRate(7, "", "12")]})
        aggregator = ReportAggregator(FakeOrders([]), schema, FakeClassifier())
        _, sub = aggregator.schema().header_rows()
        assert sub[TAX:] == ["Rate (12%)"]

    def test_unknown_rates_are_not_placed_but_count_toward_price(self):
        order = Order(
            order_id=9,
            created_at=datetime(2024, 2, 5),
            status="processing",
            line_items=[
                LineItem(1, "Lamp", 3, quantity=2, total=Decimal("200.00"), taxes={1: Decimal("10.00"), 99: Decimal("4.00")}),
            ],
        )
        table = ReportAggregator(FakeOrders([order]), _gst_5_18_exempt(), FakeClassifier()).build(FEB)
        [row] = table.rows
        assert row.price_inc_tax == Decimal("107.00")
        assert row.total_inc_tax == Decimal("214.00")
        assert row.total_excl_tax == Decimal("200.00")
        assert row.taxes == {1: Decimal("10.00")}


class TestShippingRows:
    def test_zero_shipping_adds_no_row(self):
        order = Order(
            order_id=1,
            created_at=datetime(2024, 2, 1),
            status="completed",
            line_items=[LineItem(1, "Tea", 1, total=Decimal("10"))],
            shipping_items=[ShippingItem(2, total=Decimal("0"))],
        )
        table = ReportAggregator(FakeOrders([order]), _gst_5_18_exempt(), FakeClassifier()).build(FEB)
        assert len(table.rows) == 1

    def test_tax_only_shipping_still_gets_a_row(self):
        order = Order(
            order_id=1,
            created_at=datetime(2024, 2, 1),
            status="completed",
            shipping_items=[ShippingItem(2, total=Decimal("0"), taxes={2: Decimal("1.80")})],
        )
        table = ReportAggregator(FakeOrders([order]), _gst_5_18_exempt(), FakeClassifier()).build(FEB)
        [row] = table.rows
        assert row.is_shipping
        assert row.price_inc_tax == Decimal("1.80")


class TestSqlBackedBuild:
    def _seed_o1_o2(self, seed) -> None:
        seed.gst_schema()
        seed.product(10, "Darjeeling Tea", "0902")
        seed.product(20, "Kettle", "7323")
        seed.order(
            1,
            "2024-02-05 10:00:00",
            invoice="INV-1",
            items=[
                {"item_id": 11, "name": "Darjeeling Tea", "product_id": 10, "quantity": 2, "total": "200.00",
                 "taxes": {1: "9.00", 2: "9.00"}},
                {"item_id": 12, "name": "Kettle", "product_id": 20, "quantity": 1, "total": "1000.00",
                 "taxes": {1: "90.00", 2: "90.00"}},
            ],
        )
        seed.order(
            2,
            "2024-02-29 23:59:59",
            status="processing",
            items=[{"item_id": 21, "name": "Darjeeling Tea", "product_id": 10, "quantity": 1, "total": "100.00",
                    "taxes": {1: "4.50", 2: "4.50"}}],
            shipping=[
                {"item_id": 22, "total": "50.00", "taxes": {1: "4.50", 2: "4.50"}},
                {"item_id": 23, "total": "10.00", "taxes": {1: "0.90"}},
            ],
        )
        # excluded: wrong status, and outside the month
        seed.order(3, "2024-02-10 10:00:00", status="pending", items=[{"item_id": 31, "total": "5"}])
        seed.order(4, "2024-03-01 00:00:00", items=[{"item_id": 41, "total": "5"}])
        seed.order(5, "2024-01-31 23:59:59", items=[{"item_id": 51, "total": "5"}])

    def test_three_product_rows_and_one_shipping_row(self, services, seed):
        self._seed_o1_o2(seed)
        table = services.aggregator.build(FEB)

        assert table.order_count == 2
        assert len(table.rows) == 4
        assert [r.is_shipping for r in table.rows] == [False, False, False, True]

        shipping = table.rows[-1]
        assert shipping.order_id == 2
        assert shipping.product_name == "Shipping"
        assert shipping.taxes == {1: Decimal("5.40"), 2: Decimal("4.50")}
        assert shipping.total_excl_tax == Decimal("60.00")
        assert shipping.price_inc_tax == Decimal("69.90")

    def test_cells_follow_header_layout(self, services, seed):
        self._seed_o1_o2(seed)
        table = services.aggregator.build(FEB)
        top, sub = table.header_rows()
        assert top[TAX:] == ["Standard", "GST", "", "Exempt"]
        assert sub[TAX:] == ["-", "CGST (9%)", "SGST (9%)", "-"]

        tea = table.data_rows()[0]
        assert tea[:TAX] == [
            "2024-02-05", "1", "INV-1", "completed", "Asha Rao", "Pune", "411001",
            "Darjeeling Tea", "0902", "109.00", "2", "218.00", "200.00",
        ]
        assert tea[TAX:] == ["-", "9.00", "9.00", "-"]
        assert all(len(r) == len(top) for r in table.data_rows())

    def test_preview_pages_by_order(self, services, seed):
        for i in range(12):
            seed.order(100 + i, f"2024-02-{i + 1:02d} 08:00:00", items=[{"item_id": 1000 + i, "total": "10"}])
        page = services.aggregator.preview(FEB, page=2, per_page=10)
        assert page.total_orders == 12
        assert page.pages == 2
        assert page.page == 2
        assert len(page.rows) == 2
        assert page.to_dict()["period"] == "2024-02"

    def test_preview_normalizes_paging(self, services):
        page = services.aggregator.preview(FEB, page="x", per_page=1)
        assert (page.page, page.per_page, page.pages) == (1, 10, 1)
