"""Create Sale Use Case - validates, allocates payment and commits a multi-item sale."""

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any
from uuid import uuid4

from lounge_pos.application.dto.requests import CreateSaleRequest
from lounge_pos.application.dto.responses import (
    CreateSaleResponse,
    SaleRecordResponse,
    SaleSummaryResponse,
)
from lounge_pos.config import get_logger, get_settings, sale_log_context
from lounge_pos.config.settings import SalesSettings
from lounge_pos.core.entities.sale import (
    SaleRecord,
    SaleRecordFilter,
    SaleState,
    SaleSummary,
    ValidatedCart,
)
from lounge_pos.core.exceptions import PersistenceError, POSError, StorageError
from lounge_pos.core.interfaces import IInventoryStore, ISaleLedger
from lounge_pos.core.services import (
    PROFIT_UPDATED,
    SALE_CREATED,
    STOCK_UPDATED,
    CartValidator,
    EventDispatcher,
    PaymentAllocator,
)

logger = get_logger(__name__)

TransactionFactory = Callable[[], AbstractAsyncContextManager[Any]]


def publish_today_profit(dispatcher: EventDispatcher, ledger: ISaleLedger) -> None:
    """Schedule today's running profit and revenue. Summarized off the response path."""

    async def today_profit() -> dict[str, Any]:
        today = await ledger.summarize(SaleRecordFilter.for_days(date.today()))
        return {"today_profit": today.total_profit, "today_revenue": today.total_revenue}

    dispatcher.dispatch_deferred(PROFIT_UPDATED, today_profit)


@dataclass
class CreateSaleResult:
    """Result of a committed sale."""

    records: list[SaleRecord]
    summary: SaleSummary
    state: SaleState = SaleState.COMMITTED
    remaining_stock: dict[str, int] = field(default_factory=dict)


class CreateSaleUseCase:
    """
    Sale transaction processor.

    Drives one sale attempt through RECEIVED -> VALIDATED -> ALLOCATED ->
    PERSISTED -> COMMITTED. Any failure before PERSISTED moves the sale to
    ABORTED and leaves stock and the ledger untouched.

    The ledger insert and the stock decrements run inside ``transaction``
    when one is provided, so both stores commit or roll back together.
    Without a transaction the use case undoes completed steps itself
    (increments stock back, deletes inserted records) before failing.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        sale_ledger: ISaleLedger | None = None,
        dispatcher: EventDispatcher | None = None,
        transaction: TransactionFactory | None = None,
        cart_validator: CartValidator | None = None,
        payment_allocator: PaymentAllocator | None = None,
        settings: SalesSettings | None = None,
    ):
        self._inventory_store = inventory_store
        self._sale_ledger = sale_ledger
        self._dispatcher = dispatcher
        self._transaction = transaction
        self._cart_validator = cart_validator
        self._payment_allocator = payment_allocator
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

    async def _get_cart_validator(self) -> CartValidator:
        if self._cart_validator is None:
            self._cart_validator = CartValidator(
                await self._get_inventory_store(),
                product_id_pattern=self._settings.product_id_pattern,
            )
        return self._cart_validator

    def _get_payment_allocator(self) -> PaymentAllocator:
        if self._payment_allocator is None:
            self._payment_allocator = PaymentAllocator(
                tolerance=self._settings.payment_tolerance,
                places=self._settings.currency_places,
            )
        return self._payment_allocator

    async def execute(self, request: CreateSaleRequest) -> CreateSaleResult:
        """Execute create sale use case."""
        actor = request.actor.to_actor()
        sale_ref = uuid4().hex[:12]

        with sale_log_context(sale_ref=sale_ref, actor_id=actor.id):
            state = SaleState.RECEIVED
            logger.info("sale_received", items=len(request.items), actor_role=actor.role)

            ledger = await self._get_sale_ledger()
            validator = await self._get_cart_validator()
            allocator = self._get_payment_allocator()

            try:
                cart = await validator.validate(request.cart_lines())
                state = self._advance(state, SaleState.VALIDATED, cart_total=cart.cart_total)

                splits = allocator.allocate(
                    cart.lines, cart.cart_total, request.payment.to_declaration()
                )
                state = self._advance(state, SaleState.ALLOCATED)

                created_at = datetime.now(UTC)
                records = [
                    SaleRecord.from_line(line, split, actor, created_at)
                    for line, split in zip(cart.lines, splits, strict=True)
                ]
                remaining = await self._persist(records, cart)
                state = self._advance(state, SaleState.PERSISTED, records=len(records))
            except POSError as e:
                self._advance(state, SaleState.ABORTED, reason=e.code)
                logger.warning(
                    "sale_aborted",
                    from_state=state.value,
                    reason=e.code,
                    error=e.message,
                )
                raise

            summary = SaleSummary.from_records(records)
            state = self._advance(state, SaleState.COMMITTED)
            logger.info(
                "sale_committed",
                record_ids=[r.id for r in records],
                total_revenue=summary.total_revenue,
                total_profit=summary.total_profit,
                total_items=summary.total_items,
            )

            await self._emit(records, summary, cart, remaining, ledger)

        return CreateSaleResult(
            records=records,
            summary=summary,
            state=state,
            remaining_stock=remaining,
        )

    @staticmethod
    def _advance(current: SaleState, target: SaleState, **fields: Any) -> SaleState:
        logger.debug("sale_state_changed", from_state=current.value, to_state=target.value, **fields)
        return target

    async def _persist(self, records: list[SaleRecord], cart: ValidatedCart) -> dict[str, int]:
        """Insert records and decrement stock as one unit, bounded by the persist timeout.

        Raises:
            StockConflictError: stock fell below a requested quantity since validation
            ProductNotFoundError: product removed since validation
            PersistenceError: storage failure or timeout; nothing was applied
        """
        quantities = cart.quantities_by_product()
        timeout = self._settings.persist_timeout

        try:
            return await asyncio.wait_for(self._write(records, quantities), timeout=timeout)
        except PersistenceError:
            raise
        except StorageError as e:
            raise PersistenceError("create_sale", e.message) from e
        except POSError:
            raise
        except TimeoutError as e:
            raise PersistenceError("create_sale", f"timed out after {timeout}s") from e
        except Exception as e:
            raise PersistenceError("create_sale", str(e)) from e

    async def _write(self, records: list[SaleRecord], quantities: dict[str, int]) -> dict[str, int]:
        ledger = await self._get_sale_ledger()
        inventory = await self._get_inventory_store()

        if self._transaction is not None:
            async with self._transaction():
                await ledger.insert_many(records)
                return {pid: await inventory.decrement(pid, qty) for pid, qty in quantities.items()}

        remaining: dict[str, int] = {}
        try:
            await ledger.insert_many(records)
            for pid, qty in quantities.items():
                remaining[pid] = await inventory.decrement(pid, qty)
        except BaseException:
            await self._compensate(records, {pid: quantities[pid] for pid in remaining})
            raise
        return remaining

    async def _compensate(self, records: list[SaleRecord], decremented: dict[str, int]) -> None:
        """Undo a partially applied sale on a non-transactional backend."""
        ledger = await self._get_sale_ledger()
        inventory = await self._get_inventory_store()
        failures: list[str] = []

        for pid, qty in decremented.items():
            try:
                await inventory.increment(pid, qty)
            except Exception as e:
                failures.append(f"increment {pid}: {e}")

        for record in records:
            if record.id is None:
                continue
            try:
                await ledger.delete_one(record.id)
            except Exception as e:
                failures.append(f"delete {record.id}: {e}")
            record.id = None

        if failures:
            logger.error("sale_compensation_incomplete", failures=failures)
            raise PersistenceError(
                "create_sale", "; ".join(failures), outcome="partially_applied"
            )
        logger.info(
            "sale_compensated",
            products=len(decremented),
            records=len(records),
        )

    async def _emit(
        self,
        records: list[SaleRecord],
        summary: SaleSummary,
        cart: ValidatedCart,
        remaining: dict[str, int],
        ledger: ISaleLedger,
    ) -> None:
        dispatcher = self._get_dispatcher()
        response = self.to_response(CreateSaleResult(records=records, summary=summary))
        dispatcher.dispatch(SALE_CREATED, response.model_dump(mode="json"))

        lines_by_product = {line.product_id: line for line in cart.lines}
        for pid, new_quantity in remaining.items():
            line = lines_by_product[pid]
            dispatcher.dispatch(
                STOCK_UPDATED,
                {
                    "product_id": pid,
                    "product_name": line.product_name,
                    "new_quantity": new_quantity,
                    "low_stock": new_quantity <= line.reorder_level,
                },
            )

        if self._settings.emit_profit_updates:
            publish_today_profit(dispatcher, ledger)

    def to_response(self, result: CreateSaleResult) -> CreateSaleResponse:
        """Convert result to API response."""
        summary = result.summary
        return CreateSaleResponse(
            lines=[SaleRecordResponse.from_record(r) for r in result.records],
            summary=SaleSummaryResponse(
                total_revenue=summary.total_revenue,
                total_profit=summary.total_profit,
                total_items=summary.total_items,
                payment_totals={t.value: a for t, a in summary.payment_totals.items()},
            ),
        )
