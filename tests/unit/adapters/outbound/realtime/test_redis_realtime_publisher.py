"""Unit tests for Redis real-time publisher."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from whatsapp_ingest.adapters.outbound.realtime.noop_realtime_publisher import (
    NoOpRealtimePublisher,
)
from whatsapp_ingest.adapters.outbound.realtime.redis_realtime_publisher import (
    RedisRealtimePublisher,
)

FROM_URL = "whatsapp_ingest.adapters.outbound.realtime.redis_realtime_publisher.aioredis.from_url"


@pytest.mark.asyncio
async def test_publish_serializes_payload_as_json():
    """Test publish sends a JSON body on the given channel."""
    client = AsyncMock()
    publisher = RedisRealtimePublisher("redis://localhost:6379/0")
    sent_at = datetime(2026, 1, 1, tzinfo=timezone.utc)

    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = client

        await publisher.publish("chat:org:org-1", {"type": "new_message", "sent_at": sent_at})
        await publisher.publish("chat:org:org-1", {"type": "new_message"})

        mock_from_url.assert_awaited_once()
        channel, raw = client.publish.call_args_list[0].args
        assert channel == "chat:org:org-1"
        assert json.loads(raw) == {"type": "new_message", "sent_at": str(sent_at)}


@pytest.mark.asyncio
async def test_publish_errors_propagate():
    """Test publish failures surface to the caller."""
    client = AsyncMock()
    client.publish.side_effect = ConnectionError("redis down")
    publisher = RedisRealtimePublisher("redis://localhost:6379/0")

    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = client

        with pytest.raises(ConnectionError):
            await publisher.publish("chat:org:org-1", {"type": "new_message"})


@pytest.mark.asyncio
async def test_noop_publisher_drops_events():
    """Test the no-op publisher accepts and ignores events."""
    publisher = NoOpRealtimePublisher()

    assert await publisher.publish("chat:org:org-1", {"type": "new_message"}) is None
