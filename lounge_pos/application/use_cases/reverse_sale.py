"""Reverse Sale Use Case - deletes a sale record and returns its quantity to stock."""

import asyncio
from dataclasses import dataclass

from lounge_pos.application.dto.requests import ReverseSaleRequest
from lounge_pos.application.dto.responses import ReverseSaleResponse
from lounge_pos.application.use_cases.create_sale import TransactionFactory, publish_today_profit
from lounge_pos.config import get_logger, get_settings, sale_log_context
from lounge_pos.config.settings import SalesSettings
from lounge_pos.core.entities.product import Product
from lounge_pos.core.entities.sale import SaleRecord
from lounge_pos.core.exceptions import (
    PersistenceError,
    POSError,
    ProductNotFoundError,
    SaleRecordNotFoundError,
    StorageError,
)
from lounge_pos.core.interfaces import IInventoryStore, ISaleLedger
from lounge_pos.core.services import SALE_DELETED, STOCK_UPDATED, EventDispatcher

logger = get_logger(__name__)


@dataclass
class ReverseSaleResult:
    """Result of a reversed sale record."""

    sale_record_id: int
    product_id: str
    quantity_returned: int
    remaining_stock: int | None = None


class ReverseSaleUseCase:
    """
    Delete one sale record and restore its quantity to stock.

    The delete and the increment share the atomicity boundary used by
    ``CreateSaleUseCase``. A record whose product no longer exists is still
    deleted; nothing is returned to stock. Authorization is the caller's job.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        sale_ledger: ISaleLedger | None = None,
        dispatcher: EventDispatcher | None = None,
        transaction: TransactionFactory | None = None,
        settings: SalesSettings | None = None,
    ):
        self._inventory_store = inventory_store
        self._sale_ledger = sale_ledger
        self._dispatcher = dispatcher
        self._transaction = transaction
        self._settings = settings or get_settings().sales

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from lounge_pos.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def _get_sale_ledger(self) -> ISaleLedger:
        if self._sale_ledger is None:
            from lounge_pos.infrastructure.storage.sqlite import (
                get_sale_ledger,
                get_transaction,
            )

            self._sale_ledger = await get_sale_ledger()
            if self._transaction is None and self._inventory_store is None:
                self._transaction = get_transaction
        return self._sale_ledger

    def _get_dispatcher(self) -> EventDispatcher:
        if self._dispatcher is None:
            from lounge_pos.infrastructure.notifications import NullNotificationSink

            self._dispatcher = EventDispatcher(NullNotificationSink())
        return self._dispatcher

    async def execute(self, request: ReverseSaleRequest) -> ReverseSaleResult:
        """Execute reverse sale use case."""
        record_id = request.sale_record_id

        with sale_log_context(sale_record_id=record_id, actor_id=request.actor.id):
            ledger = await self._get_sale_ledger()
            inventory = await self._get_inventory_store()

            record = await ledger.get(record_id)
            if record is None:
                raise SaleRecordNotFoundError(record_id)
            product = await inventory.get_product(record.product_id)

            timeout = self._settings.persist_timeout
            try:
                remaining = await asyncio.wait_for(
                    self._write(record, product is not None), timeout=timeout
                )
            except POSError as e:
                if isinstance(e, StorageError) and not isinstance(e, PersistenceError):
                    raise PersistenceError("reverse_sale", e.message) from e
                logger.warning("sale_reversal_failed", reason=e.code, error=e.message)
                raise
            except TimeoutError as e:
                raise PersistenceError("reverse_sale", f"timed out after {timeout}s") from e
            except Exception as e:
                raise PersistenceError("reverse_sale", str(e)) from e

            returned = record.quantity_sold if remaining is not None else 0
            if remaining is None:
                logger.warning(
                    "sale_reversed_without_restock",
                    product_id=record.product_id,
                    quantity=record.quantity_sold,
                )
            logger.info(
                "sale_reversed",
                product_id=record.product_id,
                quantity_returned=returned,
                remaining=remaining,
            )

            result = ReverseSaleResult(
                sale_record_id=record_id,
                product_id=record.product_id,
                quantity_returned=returned,
                remaining_stock=remaining,
            )
            await self._emit(result, record, product, ledger)

        return result

    async def _write(self, record: SaleRecord, restock: bool) -> int | None:
        """Delete the record, then restock. Returns the new quantity, or None."""
        if self._transaction is not None:
            async with self._transaction():
                await self._delete(record)
                return await self._restock(record) if restock else None

        await self._delete(record)
        if not restock:
            return None
        try:
            return await self._restock(record)
        except BaseException:
            ledger = await self._get_sale_ledger()
            await ledger.insert_many([record])
            logger.info("sale_reversal_compensated", record_id=record.id)
            raise

    async def _delete(self, record: SaleRecord) -> None:
        ledger = await self._get_sale_ledger()
        if not await ledger.delete_one(record.id):  # type: ignore[arg-type]
            raise SaleRecordNotFoundError(record.id)  # type: ignore[arg-type]

    async def _restock(self, record: SaleRecord) -> int | None:
        inventory = await self._get_inventory_store()
        try:
            return await inventory.increment(record.product_id, record.quantity_sold)
        except ProductNotFoundError:
            return None

    async def _emit(
        self,
        result: ReverseSaleResult,
        record: SaleRecord,
        product: Product | None,
        ledger: ISaleLedger,
    ) -> None:
        dispatcher = self._get_dispatcher()
        dispatcher.dispatch(
            SALE_DELETED,
            {
                "sale_record_id": result.sale_record_id,
                "product_id": result.product_id,
                "quantity_returned": result.quantity_returned,
            },
        )

        if result.remaining_stock is not None:
            reorder_level = product.reorder_level if product is not None else 0
            dispatcher.dispatch(
                STOCK_UPDATED,
                {
                    "product_id": record.product_id,
                    "product_name": record.product_name,
                    "new_quantity": result.remaining_stock,
                    "low_stock": result.remaining_stock <= reorder_level,
                },
            )

        if self._settings.emit_profit_updates:
            publish_today_profit(dispatcher, ledger)

    def to_response(self, result: ReverseSaleResult) -> ReverseSaleResponse:
        """Convert result to API response."""
        if result.quantity_returned:
            message = f"Sale deleted and {result.quantity_returned} units returned to stock"
        else:
            message = "Sale deleted; product no longer exists, no stock returned"
        return ReverseSaleResponse(
            sale_record_id=result.sale_record_id,
            product_id=result.product_id,
            quantity_returned=result.quantity_returned,
            message=message,
        )
