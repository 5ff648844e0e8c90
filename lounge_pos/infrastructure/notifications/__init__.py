"""Notification sinks for post-commit events."""

from lounge_pos.config import get_settings
from lounge_pos.core.exceptions import ConfigurationError
from lounge_pos.core.interfaces import INotificationSink
from lounge_pos.infrastructure.notifications.sinks import (
    LogNotificationSink,
    NullNotificationSink,
    WebhookNotificationSink,
)


def get_notification_sink() -> INotificationSink:
    """Build the sink selected by ``NOTIFY_BACKEND``."""
    settings = get_settings().notifications

    if settings.backend == "none":
        return NullNotificationSink()
    if settings.backend == "webhook":
        if not settings.webhook_url:
            raise ConfigurationError("NOTIFY_WEBHOOK_URL is required for the webhook backend")
        return WebhookNotificationSink(settings.webhook_url, timeout=settings.timeout)
    return LogNotificationSink()


__all__ = [
    "LogNotificationSink",
    "NullNotificationSink",
    "WebhookNotificationSink",
    "get_notification_sink",
]
