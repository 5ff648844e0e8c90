"""SQLite storage implementations."""

from lounge_pos.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    in_transaction,
)
from lounge_pos.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from lounge_pos.infrastructure.storage.sqlite.sale_ledger import SQLiteSaleLedger

# Singleton instances
_inventory_store: SQLiteInventoryStore | None = None
_sale_ledger: SQLiteSaleLedger | None = None


async def get_inventory_store() -> SQLiteInventoryStore:
    """Get singleton inventory store instance."""
    global _inventory_store
    if _inventory_store is None:
        _inventory_store = SQLiteInventoryStore()
    return _inventory_store


async def get_sale_ledger() -> SQLiteSaleLedger:
    """Get singleton sale ledger instance."""
    global _sale_ledger
    if _sale_ledger is None:
        _sale_ledger = SQLiteSaleLedger()
    return _sale_ledger


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "in_transaction",
    # Store classes
    "SQLiteInventoryStore",
    "SQLiteSaleLedger",
    # Factory functions
    "get_inventory_store",
    "get_sale_ledger",
]
