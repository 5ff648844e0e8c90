"""
Notification sink implementations.

Sinks receive post-commit events from the ``EventDispatcher``. They may raise;
the dispatcher logs and drops the failure.
"""

from datetime import UTC, datetime
from typing import Any

import httpx

from lounge_pos.config import get_logger
from lounge_pos.core.exceptions import NotificationError
from lounge_pos.core.interfaces import INotificationSink

logger = get_logger(__name__)


class NullNotificationSink(INotificationSink):
    """Drops every event."""

    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        return None


class LogNotificationSink(INotificationSink):
    """Writes each event to the structured log."""

    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        logger.info("notification_published", notification=event, payload=payload)


class WebhookNotificationSink(INotificationSink):
    """
    POSTs events as JSON to a webhook endpoint.

    Body: ``{"event": ..., "payload": ..., "emitted_at": ...}``. Any
    non-2xx response or transport error raises ``NotificationError``.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        body = {
            "event": event,
            "payload": payload,
            "emitted_at": datetime.now(UTC).isoformat(),
        }
        try:
            response = await self._get_client().post(self.url, json=body)
        except httpx.HTTPError as e:
            raise NotificationError(event, str(e)) from e

        if not response.is_success:
            raise NotificationError(event, f"HTTP {response.status_code}: {response.text[:200]}")

        logger.debug("webhook_delivered", notification=event, status=response.status_code)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
