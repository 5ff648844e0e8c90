"""SQLite implementation of the sale ledger."""

import json
from datetime import UTC, datetime

import aiosqlite

from lounge_pos.config import get_logger
from lounge_pos.core.entities.sale import (
    PaymentSplit,
    SaleRecord,
    SaleRecordFilter,
    SalesTotals,
    TenderType,
)
from lounge_pos.core.exceptions import DatabaseError
from lounge_pos.core.interfaces.sale_ledger import ISaleLedger
from lounge_pos.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _utc_iso(value: datetime) -> str:
    """Stored timestamps are UTC ISO strings so they sort lexically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


class SQLiteSaleLedger(ISaleLedger):
    """SQLite implementation of sale record storage."""

    async def insert_many(self, records: list[SaleRecord]) -> list[SaleRecord]:
        """Insert every record in one transaction.

        Records without an id get a new one; a record that already has an id
        is stored under it.
        """
        try:
            async with get_transaction() as conn:
                for record in records:
                    cursor = await conn.execute(
                        """
                        INSERT INTO sale_records (
                            id, product_id, product_name, quantity_sold,
                            unit_price, total_price, payment_split,
                            unit_cost, profit, sold_by, sold_by_role, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            record.id,
                            record.product_id,
                            record.product_name,
                            record.quantity_sold,
                            record.unit_price,
                            record.total_price,
                            self._dump_split(record.payment_split),
                            record.unit_cost,
                            record.profit,
                            record.sold_by,
                            record.sold_by_role,
                            _utc_iso(record.created_at),
                        ),
                    )
                    record.id = cursor.lastrowid
        except aiosqlite.Error as e:
            raise DatabaseError("insert_sale_records", str(e)) from e

        logger.info(
            "sale_records_inserted",
            count=len(records),
            record_ids=[r.id for r in records],
        )
        return records

    async def get(self, record_id: int) -> SaleRecord | None:
        """Get sale record by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM sale_records WHERE id = ?", (record_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_record(row)

    async def delete_one(self, record_id: int) -> bool:
        """Delete a sale record."""
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute("DELETE FROM sale_records WHERE id = ?", (record_id,))
                deleted = cursor.rowcount > 0
        except aiosqlite.Error as e:
            raise DatabaseError("delete_sale_record", str(e)) from e

        if deleted:
            logger.info("sale_record_deleted", record_id=record_id)
        return deleted

    async def list_records(
        self,
        record_filter: SaleRecordFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SaleRecord]:
        """List sale records, newest first."""
        where, params = self._build_where(record_filter)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM sale_records
                {where}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_record(row) for row in rows]

    async def summarize(self, record_filter: SaleRecordFilter | None = None) -> SalesTotals:
        """Aggregate revenue, profit and counts."""
        where, params = self._build_where(record_filter)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT
                    COALESCE(SUM(total_price), 0) AS total_revenue,
                    COALESCE(SUM(profit), 0) AS total_profit,
                    COUNT(*) AS total_transactions,
                    COALESCE(SUM(quantity_sold), 0) AS total_items
                FROM sale_records
                {where}
                """,
                params,
            )
            row = await cursor.fetchone()

        return SalesTotals(
            total_revenue=round(float(row["total_revenue"]), 2),
            total_profit=round(float(row["total_profit"]), 2),
            total_transactions=int(row["total_transactions"]),
            total_items=int(row["total_items"]),
        )

    @staticmethod
    def _build_where(record_filter: SaleRecordFilter | None) -> tuple[str, tuple]:
        if record_filter is None:
            return "", ()

        clauses: list[str] = []
        params: list = []
        if record_filter.sold_by:
            clauses.append("sold_by = ?")
            params.append(record_filter.sold_by)
        if record_filter.created_from:
            clauses.append("created_at >= ?")
            params.append(_utc_iso(record_filter.created_from))
        if record_filter.created_to:
            clauses.append("created_at <= ?")
            params.append(_utc_iso(record_filter.created_to))

        if not clauses:
            return "", ()
        return "WHERE " + " AND ".join(clauses), tuple(params)

    @staticmethod
    def _dump_split(split: PaymentSplit) -> str:
        return json.dumps({TenderType(k).value: v for k, v in split.items()})

    @staticmethod
    def _load_split(raw: str | None) -> PaymentSplit:
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return {}
        return {TenderType(k): float(v) for k, v in data.items()}

    @classmethod
    def _row_to_record(cls, row: aiosqlite.Row) -> SaleRecord:
        """Convert a database row to a SaleRecord entity."""
        created_at = datetime.now(UTC)
        if row["created_at"]:
            try:
                created_at = datetime.fromisoformat(row["created_at"])
            except (ValueError, TypeError):
                pass

        return SaleRecord(
            id=row["id"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            quantity_sold=int(row["quantity_sold"]),
            unit_price=float(row["unit_price"]),
            total_price=float(row["total_price"]),
            payment_split=cls._load_split(row["payment_split"]),
            unit_cost=float(row["unit_cost"]),
            profit=float(row["profit"]),
            sold_by=row["sold_by"],
            sold_by_role=row["sold_by_role"],
            created_at=created_at,
        )
