"""In-memory store fakes for use case tests."""

import asyncio

import pytest

from lounge_pos.config.settings import SalesSettings
from lounge_pos.core.entities import Product, SaleRecord, SaleRecordFilter, SalesTotals
from lounge_pos.core.exceptions import ProductNotFoundError, StockConflictError
from lounge_pos.core.interfaces import IInventoryStore, INotificationSink, ISaleLedger
from lounge_pos.core.services import EventDispatcher


class InMemoryInventoryStore(IInventoryStore):
    """Non-transactional inventory store."""

    def __init__(self, products: list[Product] | None = None):
        self.products = {p.id: p.model_copy() for p in products or []}
        self.fail_decrement_for: str | None = None

    async def get_product(self, product_id):
        product = self.products.get(product_id)
        return product.model_copy() if product else None

    async def decrement(self, product_id, quantity):
        if product_id == self.fail_decrement_for:
            raise RuntimeError("disk I/O error")
        product = self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if product.quantity_on_hand < quantity:
            raise StockConflictError(product_id, product.quantity_on_hand, quantity)
        product.quantity_on_hand -= quantity
        return product.quantity_on_hand

    async def increment(self, product_id, quantity):
        product = self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        product.quantity_on_hand += quantity
        return product.quantity_on_hand

    async def create_product(self, product):
        self.products[product.id] = product.model_copy()
        return product

    async def list_products(self, limit=100, offset=0):
        ordered = sorted(self.products.values(), key=lambda p: p.name)
        return ordered[offset : offset + limit]

    def stock(self, product_id: str) -> int:
        return self.products[product_id].quantity_on_hand


class InMemorySaleLedger(ISaleLedger):
    """Non-transactional sale ledger."""

    def __init__(self):
        self.records: dict[int, SaleRecord] = {}
        self._next_id = 1

    async def insert_many(self, records):
        for record in records:
            if record.id is None:
                record.id = self._next_id
                self._next_id += 1
            self.records[record.id] = record.model_copy()
        return records

    async def get(self, record_id):
        record = self.records.get(record_id)
        return record.model_copy() if record else None

    async def delete_one(self, record_id):
        return self.records.pop(record_id, None) is not None

    async def list_records(self, record_filter=None, limit=100, offset=0):
        matching = [r for r in self.records.values() if self._matches(r, record_filter)]
        matching.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return matching[offset : offset + limit]

    async def summarize(self, record_filter=None):
        matching = [r for r in self.records.values() if self._matches(r, record_filter)]
        return SalesTotals(
            total_revenue=round(sum(r.total_price for r in matching), 2),
            total_profit=round(sum(r.profit for r in matching), 2),
            total_transactions=len(matching),
            total_items=sum(r.quantity_sold for r in matching),
        )

    @staticmethod
    def _matches(record: SaleRecord, record_filter: SaleRecordFilter | None) -> bool:
        if record_filter is None:
            return True
        if record_filter.sold_by and record.sold_by != record_filter.sold_by:
            return False
        if record_filter.created_from and record.created_at < record_filter.created_from:
            return False
        if record_filter.created_to and record.created_at > record_filter.created_to:
            return False
        return True


class RecordingSink(INotificationSink):
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def publish(self, event, payload):
        self.events.append((event, payload))

    def named(self, event: str) -> list[dict]:
        return [payload for name, payload in self.events if name == event]


@pytest.fixture
def inventory() -> InMemoryInventoryStore:
    return InMemoryInventoryStore(
        [
            Product(id="P1", name="Tusker Lager 500ml", unit_price=1000, unit_cost=600, quantity_on_hand=10),
            Product(id="P2", name="Gilbeys Gin 250ml", unit_price=500, unit_cost=300, quantity_on_hand=5),
            Product(id="P3", name="Blue Ice Shot", unit_price=50, unit_cost=50, quantity_on_hand=7, reorder_level=5),
        ]
    )


@pytest.fixture
def ledger() -> InMemorySaleLedger:
    return InMemorySaleLedger()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(sink) -> EventDispatcher:
    return EventDispatcher(sink)


@pytest.fixture
def sales_settings() -> SalesSettings:
    return SalesSettings()


@pytest.fixture
def make_inventory():
    """Build an inventory fake over custom products."""
    return InMemoryInventoryStore


@pytest.fixture
def slow_ledger() -> InMemorySaleLedger:
    """Ledger whose inserts take a second."""

    class SlowLedger(InMemorySaleLedger):
        async def insert_many(self, records):
            await asyncio.sleep(1)
            return await super().insert_many(records)

    return SlowLedger()
