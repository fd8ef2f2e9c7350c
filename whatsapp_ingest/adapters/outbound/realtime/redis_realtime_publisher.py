"""Redis pub/sub real-time publisher adapter."""

import json
from typing import Any, Optional

from redis import asyncio as aioredis

from whatsapp_ingest.application.ports.realtime_publisher import RealtimePublisher


class RedisRealtimePublisher(RealtimePublisher):
    """Publishes JSON events on Redis channels for the real-time fan-out."""

    def __init__(self, redis_url: str) -> None:
        """
        Initialize Redis publisher.

        Args:
            redis_url: Redis connection URL
        """
        self._redis_url = redis_url
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        """
        Publish a payload on a channel.

        Errors propagate; the post-commit dispatcher logs them.

        Args:
            channel: Channel name
            payload: JSON-serializable event body
        """
        client = await self._get_client()
        await client.publish(channel, json.dumps(payload, default=str))

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
