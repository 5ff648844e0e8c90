"""
Service factory functions for dependency injection.

Wires the SQLite stores, the SQLite transaction and the configured
notification sink into the use cases. Callers outside the application layer
should obtain use cases from here.
"""

from typing import TYPE_CHECKING

from lounge_pos.application.use_cases import (
    CreateSaleUseCase,
    ListSalesUseCase,
    ReverseSaleUseCase,
)
from lounge_pos.config import get_settings
from lounge_pos.core.services import EventDispatcher

if TYPE_CHECKING:
    from lounge_pos.core.interfaces import INotificationSink


# Singleton dispatcher; pending deliveries are drained on shutdown
_event_dispatcher: EventDispatcher | None = None


def get_event_dispatcher(sink: "INotificationSink | None" = None) -> EventDispatcher:
    """
    Get or create the EventDispatcher.

    Args:
        sink: Optional sink override; replaces the singleton when given

    Returns:
        Dispatcher bound to the configured notification sink
    """
    global _event_dispatcher

    if _event_dispatcher is not None and sink is None:
        return _event_dispatcher

    from lounge_pos.infrastructure.notifications import get_notification_sink

    settings = get_settings()
    _event_dispatcher = EventDispatcher(
        sink or get_notification_sink(),
        timeout=settings.notifications.timeout,
    )
    return _event_dispatcher


async def get_create_sale_use_case() -> CreateSaleUseCase:
    """Sale processor over SQLite with a shared transaction."""
    from lounge_pos.infrastructure.storage.sqlite import (
        get_inventory_store,
        get_sale_ledger,
        get_transaction,
    )

    return CreateSaleUseCase(
        inventory_store=await get_inventory_store(),
        sale_ledger=await get_sale_ledger(),
        dispatcher=get_event_dispatcher(),
        transaction=get_transaction,
        settings=get_settings().sales,
    )


async def get_reverse_sale_use_case() -> ReverseSaleUseCase:
    """Reversal over SQLite with a shared transaction."""
    from lounge_pos.infrastructure.storage.sqlite import (
        get_inventory_store,
        get_sale_ledger,
        get_transaction,
    )

    return ReverseSaleUseCase(
        inventory_store=await get_inventory_store(),
        sale_ledger=await get_sale_ledger(),
        dispatcher=get_event_dispatcher(),
        transaction=get_transaction,
        settings=get_settings().sales,
    )


async def get_list_sales_use_case() -> ListSalesUseCase:
    from lounge_pos.infrastructure.storage.sqlite import get_sale_ledger

    return ListSalesUseCase(sale_ledger=await get_sale_ledger())


async def shutdown_services() -> None:
    """Drain pending notifications, close the sink and the connection pool."""
    global _event_dispatcher

    if _event_dispatcher is not None:
        await _event_dispatcher.close()
        _event_dispatcher = None

    from lounge_pos.infrastructure.storage.sqlite import close_pool

    await close_pool()


def reset_services() -> None:
    """Reset singletons (for testing)."""
    global _event_dispatcher
    _event_dispatcher = None
