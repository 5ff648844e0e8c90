"""
Post-commit event dispatch.

Delivers events to a notification sink on background tasks so the sale
response never waits on observers.
"""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from lounge_pos.config import get_logger
from lounge_pos.core.interfaces import INotificationSink

logger = get_logger(__name__)

SALE_CREATED = "sale.created"
SALE_DELETED = "sale.deleted"
STOCK_UPDATED = "stock.updated"
PROFIT_UPDATED = "profit.updated"


class EventDispatcher:
    """
    Fire-and-forget wrapper around an ``INotificationSink``.

    Failures and timeouts are logged and dropped. Pending deliveries are
    tracked so they are not garbage collected mid-flight and can be drained
    on shutdown.
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(self, sink: INotificationSink, timeout: float | None = None):
        self._sink = sink
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, event: str, payload: dict[str, Any]) -> None:
        """Schedule delivery of one event and return immediately."""
        self._schedule(event, self._deliver(event, payload))

    def dispatch_deferred(
        self,
        event: str,
        build_payload: Callable[[], Awaitable[dict[str, Any] | None]],
    ) -> None:
        """Schedule an event whose payload is built on the background task.

        ``build_payload`` may return None to skip the event. Building and
        delivery are each bounded by the dispatcher timeout.
        """
        self._schedule(event, self._build_and_deliver(event, build_payload))

    def _schedule(self, event: str, delivery: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            delivery.close()
            logger.warning("notification_skipped_no_loop", notification=event)
            return

        task = loop.create_task(delivery, name=f"notify:{event}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _build_and_deliver(
        self,
        event: str,
        build_payload: Callable[[], Awaitable[dict[str, Any] | None]],
    ) -> None:
        try:
            payload = await asyncio.wait_for(build_payload(), timeout=self._timeout)
        except TimeoutError:
            logger.warning("notification_skipped", notification=event, error="timeout")
            return
        except Exception as e:
            logger.warning("notification_skipped", notification=event, error=str(e))
            return
        if payload is not None:
            await self._deliver(event, payload)

    async def _deliver(self, event: str, payload: dict[str, Any]) -> None:
        try:
            await asyncio.wait_for(self._sink.publish(event, payload), timeout=self._timeout)
        except TimeoutError:
            logger.warning("notification_failed", notification=event, error="timeout")
        except Exception as e:
            logger.warning("notification_failed", notification=event, error=str(e))
        else:
            logger.debug("notification_delivered", notification=event)

    async def drain(self) -> None:
        """Wait for every pending delivery to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Drain pending deliveries and close the sink."""
        await self.drain()
        await self._sink.close()
