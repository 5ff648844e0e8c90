"""End-to-end sale flows against a migrated SQLite database."""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest

from lounge_pos.application.dto.requests import (
    CreateSaleRequest,
    ListSalesRequest,
    ReverseSaleRequest,
    parse_request,
)
from lounge_pos.application.services import (
    get_create_sale_use_case,
    get_event_dispatcher,
    get_list_sales_use_case,
    get_reverse_sale_use_case,
)
from lounge_pos.application.use_cases import CreateSaleUseCase
from lounge_pos.config.settings import SalesSettings
from lounge_pos.core.entities import SaleState, TenderType
from lounge_pos.core.exceptions import (
    DatabaseError,
    InsufficientStockError,
    PaymentMismatchError,
    PersistenceError,
    ProductNotFoundError,
)
from lounge_pos.infrastructure.storage.sqlite import (
    SQLiteInventoryStore,
    SQLiteSaleLedger,
    get_connection,
    get_pool,
    get_transaction,
)

ACTOR = {"id": "u1", "role": "manager"}


def _sale(items: list[tuple[str, int]], **payment) -> CreateSaleRequest:
    return parse_request(
        CreateSaleRequest,
        {
            "items": [{"productId": pid, "quantity": qty} for pid, qty in items],
            "payment": payment,
            "actor": ACTOR,
        },
    )


async def _stock(product_id: str) -> int:
    product = await SQLiteInventoryStore().get_product(product_id)
    return product.quantity_on_hand


async def _record_count() -> int:
    return len(await SQLiteSaleLedger().list_records())


@pytest.fixture
async def db(stocked_db: Path) -> AsyncGenerator[Path, None]:
    yield stocked_db
    await get_event_dispatcher().drain()


class TestCreateSaleFlow:
    async def test_single_line_cash_sale(self, db):
        use_case = await get_create_sale_use_case()
        result = await use_case.execute(_sale([("P1", 3)], cash=3000))

        assert result.state == SaleState.COMMITTED
        [record] = result.records
        assert record.id is not None
        assert record.total_price == 3000
        assert record.profit == 1200
        assert record.payment_split == {TenderType.CASH: 3000}
        assert result.remaining_stock == {"P1": 7}
        assert await _stock("P1") == 7

        stored = await SQLiteSaleLedger().get(record.id)
        assert stored.sold_by == "u1"
        assert stored.sold_by_role == "manager"

    async def test_split_tender(self, db):
        use_case = await get_create_sale_use_case()
        result = await use_case.execute(_sale([("P1", 1)], cash=700, mobileMoney=300))

        [record] = result.records
        assert record.payment_split == {TenderType.CASH: 700, TenderType.MOBILE_MONEY: 300}
        response = use_case.to_response(result)
        assert response.summary.payment_totals == {"cash": 700, "mobile-money": 300}

    async def test_multi_line_sale(self, db):
        use_case = await get_create_sale_use_case()
        result = await use_case.execute(
            _sale([("P1", 2), ("P2", 2)], cash=1500, mobileMoney=1500)
        )

        assert len(result.records) == 2
        assert result.summary.total_revenue == 3000
        assert result.summary.total_profit == 1200
        assert result.summary.total_items == 4
        assert await _stock("P1") == 8
        assert await _stock("P2") == 3

    async def test_payment_mismatch_writes_nothing(self, db):
        use_case = await get_create_sale_use_case()
        with pytest.raises(PaymentMismatchError):
            await use_case.execute(_sale([("P1", 3)], cash=2500))

        assert await _stock("P1") == 10
        assert await _record_count() == 0

    async def test_insufficient_stock_writes_nothing(self, db):
        use_case = await get_create_sale_use_case()
        with pytest.raises(InsufficientStockError):
            await use_case.execute(_sale([("P1", 1), ("P2", 6)], cash=4000))

        assert await _stock("P1") == 10
        assert await _stock("P2") == 5
        assert await _record_count() == 0

    async def test_unknown_product(self, db):
        use_case = await get_create_sale_use_case()
        with pytest.raises(ProductNotFoundError):
            await use_case.execute(_sale([("P9", 1)], cash=100))

    async def test_concurrent_sales_do_not_oversell(self, db):
        """Two sales for all five units of P2; exactly one commits."""
        use_case = await get_create_sale_use_case()
        results = await asyncio.gather(
            use_case.execute(_sale([("P2", 5)], cash=2500)),
            use_case.execute(_sale([("P2", 5)], cash=2500)),
            return_exceptions=True,
        )

        committed = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(committed) == 1
        assert len(rejected) == 1
        assert await _stock("P2") == 0
        assert await _record_count() == 1

    async def test_persist_timeout_releases_write_lock(self, db):
        """A sale timed out behind an outside writer leaves the pool usable."""
        holder = await aiosqlite.connect(db, isolation_level=None)
        await holder.execute("BEGIN IMMEDIATE")

        blocked = CreateSaleUseCase(
            inventory_store=SQLiteInventoryStore(),
            sale_ledger=SQLiteSaleLedger(),
            transaction=get_transaction,
            settings=SalesSettings(persist_timeout=0.3),
        )
        try:
            with pytest.raises(PersistenceError) as exc:
                await blocked.execute(_sale([("P1", 1)], cash=1000))
        finally:
            await holder.execute("ROLLBACK")
            await holder.close()
        assert "timed out" in exc.value.message

        pool = await get_pool()
        use_case = await get_create_sale_use_case()
        for _ in range(pool.pool_size + 1):
            result = await use_case.execute(_sale([("P1", 1)], cash=1000))
            assert result.state == SaleState.COMMITTED

        await pool.wait_released()
        assert not any(conn.in_transaction for conn in pool._connections)
        assert await _stock("P1") == 10 - (pool.pool_size + 1)
        assert await _record_count() == pool.pool_size + 1

    async def test_failed_decrement_rolls_back_everything(self, db):
        class FailingInventory(SQLiteInventoryStore):
            async def decrement(self, product_id: str, quantity: int) -> int:
                if product_id == "P2":
                    raise DatabaseError("decrement", "disk I/O error")
                return await super().decrement(product_id, quantity)

        use_case = CreateSaleUseCase(
            inventory_store=FailingInventory(),
            sale_ledger=SQLiteSaleLedger(),
            transaction=get_transaction,
        )
        with pytest.raises(PersistenceError) as exc:
            await use_case.execute(_sale([("P1", 2), ("P2", 1)], cash=2500))

        assert exc.value.outcome == "rolled_back"
        assert await _stock("P1") == 10
        assert await _record_count() == 0


class TestReverseSaleFlow:
    async def test_reversal_restores_stock(self, db):
        create = await get_create_sale_use_case()
        sale = await create.execute(_sale([("P1", 3)], cash=3000))
        record_id = sale.records[0].id

        reverse = await get_reverse_sale_use_case()
        result = await reverse.execute(
            ReverseSaleRequest(saleRecordId=record_id, actor=ACTOR)
        )

        assert result.quantity_returned == 3
        assert result.remaining_stock == 10
        assert await _stock("P1") == 10
        assert await SQLiteSaleLedger().get(record_id) is None

    async def test_reversal_of_deleted_product(self, db):
        create = await get_create_sale_use_case()
        sale = await create.execute(_sale([("P2", 1)], cash=500))
        async with get_connection() as conn:
            await conn.execute("DELETE FROM products WHERE id = 'P2'")

        reverse = await get_reverse_sale_use_case()
        result = await reverse.execute(
            ReverseSaleRequest(saleRecordId=sale.records[0].id, actor=ACTOR)
        )

        assert result.quantity_returned == 0
        assert result.remaining_stock is None
        assert await _record_count() == 0
        assert "no stock returned" in reverse.to_response(result).message


class TestListSalesFlow:
    async def test_today_totals(self, db):
        create = await get_create_sale_use_case()
        await create.execute(_sale([("P1", 3)], cash=3000))
        await create.execute(_sale([("P2", 2)], mobileMoney=1000))

        list_sales = await get_list_sales_use_case()
        result = await list_sales.execute(ListSalesRequest(todayOnly=True))

        assert len(result.records) == 2
        assert result.records[0].product_id == "P2"
        assert result.totals.total_revenue == 4000
        assert result.totals.total_profit == 1600
        assert result.totals.total_transactions == 2
        assert result.totals.total_items == 5

        response = list_sales.to_response(result)
        assert response.totals.profit_margin == 40.0

    async def test_filter_by_seller(self, db):
        create = await get_create_sale_use_case()
        await create.execute(_sale([("P1", 1)], cash=1000))

        list_sales = await get_list_sales_use_case()
        mine = await list_sales.execute(ListSalesRequest(soldBy="u1"))
        theirs = await list_sales.execute(ListSalesRequest(soldBy="u2"))
        assert len(mine.records) == 1
        assert theirs.records == []
        assert theirs.totals.total_revenue == 0
