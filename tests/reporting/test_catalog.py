"""Tests for HSN code management."""

from __future__ import annotations

import pytest

from gst_audit.core.errors import NotFoundError, ValidationError
from gst_audit.reporting.catalog import MAX_CODE_LENGTH, ProductCatalog


@pytest.fixture
def catalog(conn, seed) -> ProductCatalog:
    seed.product(1, "Tea", "0902", sku="TEA-1")
    seed.product(2, "Kettle")
    seed.product(3, "Kettle - Red", "7323", parent_id=2)
    seed.product(4, "Draft Mug", status="draft")
    return ProductCatalog(conn)


class TestListProducts:
    def test_published_parents_newest_first(self, catalog):
        items, total, page, per_page = catalog.list_products()
        assert [p.product_id for p in items] == [2, 1]
        assert total == 2
        assert (page, per_page) == (1, 20)

    def test_status(self, catalog):
        items, *_ = catalog.list_products()
        by_id = {p.product_id: p for p in items}
        assert by_id[1].status == "ok"
        assert by_id[2].status == "missing"
        assert by_id[1].to_dict() == {
            "product_id": 1,
            "name": "Tea",
            "sku": "TEA-1",
            "hsn_code": "0902",
            "status": "ok",
        }

    def test_paging(self, conn, seed):
        for pid in range(10, 35):
            seed.product(pid, f"P{pid}")
        items, total, page, per_page = ProductCatalog(conn).list_products(page=3, per_page=10)
        assert total == 25
        assert (page, per_page) == (3, 10)
        assert [p.product_id for p in items] == [14, 13, 12, 11, 10]


class TestSetCode:
    def test_trims_and_saves(self, catalog):
        saved = catalog.set_code(2, "  7323 ")
        assert saved.hsn_code == "7323"
        assert catalog.get_code(2) == "7323"

    def test_empty_clears(self, catalog):
        assert catalog.set_code(1, "").status == "missing"

    def test_leading_zero_kept(self, catalog):
        assert catalog.set_code(2, "0401").hsn_code == "0401"

    @pytest.mark.parametrize("code", ["x" * (MAX_CODE_LENGTH + 1), "09\n02"])
    def test_invalid(self, catalog, code):
        with pytest.raises(ValidationError) as exc_info:
            catalog.set_code(1, code)
        assert exc_info.value.field == "hsn_code"
        assert catalog.get_code(1) == "0902"

    def test_unknown_product(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.set_code(999, "1234")

    def test_get_unknown(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.get(999)
