"""Core interfaces (ports) for dependency injection."""

from lounge_pos.core.interfaces.inventory_store import IInventoryStore
from lounge_pos.core.interfaces.notification_sink import INotificationSink
from lounge_pos.core.interfaces.sale_ledger import ISaleLedger

__all__ = [
    "IInventoryStore",
    "INotificationSink",
    "ISaleLedger",
]
