"""No-op real-time publisher for when fan-out is disabled."""

from typing import Any

from whatsapp_ingest.application.ports.realtime_publisher import RealtimePublisher


class NoOpRealtimePublisher(RealtimePublisher):
    """No-op adapter that drops every event."""

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        pass
