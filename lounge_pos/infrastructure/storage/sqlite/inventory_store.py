"""SQLite implementation of product stock storage."""

from datetime import UTC, datetime

import aiosqlite

from lounge_pos.config import get_logger
from lounge_pos.core.entities.product import Product
from lounge_pos.core.exceptions import DatabaseError, ProductNotFoundError, StockConflictError
from lounge_pos.core.interfaces.inventory_store import IInventoryStore
from lounge_pos.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of product and stock level storage."""

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM products WHERE id = ?", (product_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def decrement(self, product_id: str, quantity: int) -> int:
        """Conditionally remove stock; the row is untouched on shortfall."""
        now = datetime.now(UTC).isoformat()
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE products
                    SET quantity_on_hand = quantity_on_hand - ?, updated_at = ?
                    WHERE id = ? AND quantity_on_hand >= ?
                    """,
                    (quantity, now, product_id, quantity),
                )
                if cursor.rowcount == 0:
                    current = await self._current_quantity(conn, product_id)
                    if current is None:
                        raise ProductNotFoundError(product_id)
                    raise StockConflictError(product_id, available=current, requested=quantity)

                remaining = await self._current_quantity(conn, product_id)
        except aiosqlite.Error as e:
            raise DatabaseError("decrement", str(e)) from e

        logger.info(
            "stock_decremented",
            product_id=product_id,
            qty=quantity,
            remaining=remaining,
        )
        return remaining

    async def increment(self, product_id: str, quantity: int) -> int:
        """Return stock to a product."""
        now = datetime.now(UTC).isoformat()
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE products
                    SET quantity_on_hand = quantity_on_hand + ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (quantity, now, product_id),
                )
                if cursor.rowcount == 0:
                    raise ProductNotFoundError(product_id)

                remaining = await self._current_quantity(conn, product_id)
        except aiosqlite.Error as e:
            raise DatabaseError("increment", str(e)) from e

        logger.info(
            "stock_incremented",
            product_id=product_id,
            qty=quantity,
            remaining=remaining,
        )
        return remaining

    async def create_product(self, product: Product) -> Product:
        """Create a new product."""
        now = datetime.now(UTC)
        product.created_at = now
        product.updated_at = now
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO products (
                        id, name, category, unit_price, unit_cost,
                        quantity_on_hand, reorder_level, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        product.id,
                        product.name,
                        product.category,
                        product.unit_price,
                        product.unit_cost,
                        product.quantity_on_hand,
                        product.reorder_level,
                        product.created_at.isoformat(),
                        product.updated_at.isoformat(),
                    ),
                )
        except aiosqlite.Error as e:
            raise DatabaseError("create_product", str(e)) from e

        logger.info("product_created", product_id=product.id, name=product.name)
        return product

    async def list_products(self, limit: int = 100, offset: int = 0) -> list[Product]:
        """List products with pagination."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM products
                ORDER BY name
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    @staticmethod
    async def _current_quantity(conn: aiosqlite.Connection, product_id: str) -> int | None:
        cursor = await conn.execute(
            "SELECT quantity_on_hand FROM products WHERE id = ?", (product_id,)
        )
        row = await cursor.fetchone()
        return None if row is None else int(row["quantity_on_hand"])

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        created_at = datetime.now(UTC)
        if row["created_at"]:
            try:
                created_at = datetime.fromisoformat(row["created_at"])
            except (ValueError, TypeError):
                pass

        updated_at = created_at
        if row["updated_at"]:
            try:
                updated_at = datetime.fromisoformat(row["updated_at"])
            except (ValueError, TypeError):
                pass

        return Product(
            id=row["id"],
            name=row["name"],
            category=row["category"] or "",
            unit_price=float(row["unit_price"]),
            unit_cost=float(row["unit_cost"]),
            quantity_on_hand=int(row["quantity_on_hand"]),
            reorder_level=int(row["reorder_level"]),
            created_at=created_at,
            updated_at=updated_at,
        )
