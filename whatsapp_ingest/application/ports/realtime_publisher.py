"""Real-time publisher port."""

from abc import ABC, abstractmethod
from typing import Any


class RealtimePublisher(ABC):
    """Port interface for the publish-by-channel fan-out primitive."""

    @abstractmethod
    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        """
        Publish a payload on a channel.

        Args:
            channel: Channel name (e.g. ``chat:conversation:<id>``)
            payload: JSON-serializable event body
        """
        pass

    async def close(self) -> None:
        """Release the underlying connection, if any."""
        pass
