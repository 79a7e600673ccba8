"""HSN code management for published products."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from gst_audit.core.dialect import Dialect, SQLiteDialect
from gst_audit.core.errors import NotFoundError, ValidationError
from gst_audit.core.logging import get_logger
from gst_audit.core.pagination import clamp_page, clamp_per_page
from gst_audit.core.protocols import Connection

logger = get_logger(__name__)

MAX_CODE_LENGTH = 32


@dataclass(frozen=True)
class ProductCode:
    """A product and the state of its HSN code."""

    product_id: int
    name: str
    sku: str
    hsn_code: str

    @property
    def status(self) -> str:
        return "ok" if self.hsn_code else "missing"

    def to_dict(self) -> dict:
        return {**asdict(self), "status": self.status}


class ProductCatalog:
    """Read and edit per-product HSN codes."""

    def __init__(self, conn: Connection, dialect: Dialect | None = None):
        self._conn = conn
        self._dialect = dialect or SQLiteDialect()

    def _ph(self) -> str:
        return self._dialect.placeholder(0)

    def get(self, product_id: int) -> ProductCode:
        row = self._conn.execute(
            f"SELECT product_id, name, sku, hsn_code FROM gst_products WHERE product_id = {self._ph()}",
            (product_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")
        return ProductCode(int(row[0]), row[1], row[2] or "", (row[3] or "").strip())

    def get_code(self, product_id: int) -> str:
        return self.get(product_id).hsn_code

    def set_code(self, product_id: int, code: str) -> ProductCode:
        """Save *code* (trimmed) for a product; an empty code clears it.

        Raises:
            NotFoundError: unknown product
            ValidationError: code too long or contains control characters
        """
        code = (code or "").strip()
        if len(code) > MAX_CODE_LENGTH or any(ord(ch) < 32 for ch in code):
            raise ValidationError(f"Invalid HSN code {code!r}", field="hsn_code")

        with self._conn.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE gst_products SET hsn_code = {self._ph()} WHERE product_id = {self._ph()}",
                (code, product_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"Product {product_id} not found")
        logger.info("hsn.saved", product_id=product_id, hsn_code=code)
        return self.get(product_id)

    def list_products(self, page: object = 1, per_page: object = None) -> tuple[list[ProductCode], int, int, int]:
        """Published products (no variations), one page at a time.

        Returns:
            ``(items, total, page, per_page)`` with page/per_page normalized
        """
        page_no = clamp_page(page)
        size = clamp_per_page(per_page)
        where = "status = 'publish' AND parent_id IS NULL"

        total_row = self._conn.execute(f"SELECT COUNT(*) FROM gst_products WHERE {where}").fetchone()
        rows = self._conn.execute(
            f"""
            SELECT product_id, name, sku, hsn_code FROM gst_products
            WHERE {where}
            ORDER BY product_id DESC
            LIMIT {self._ph()} OFFSET {self._ph()}
            """,
            (size, (page_no - 1) * size),
        ).fetchall()
        items = [ProductCode(int(r[0]), r[1], r[2] or "", (r[3] or "").strip()) for r in rows]
        return items, int(total_row[0]), page_no, size


__all__ = ["ProductCode", "ProductCatalog"]
