"""Abstract interface for post-commit notification delivery."""

from abc import ABC, abstractmethod
from typing import Any


class INotificationSink(ABC):
    """Receives events after a sale or reversal commits.

    Delivery is best effort; implementations may raise and the dispatcher
    will log and drop the failure.
    """

    @abstractmethod
    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver one event."""
        pass

    async def close(self) -> None:
        """Release resources held by the sink."""
        return None
