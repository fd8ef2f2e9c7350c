"""Redis cache adapter for onboarding sessions and connections."""

import json
from typing import Any, Optional

from redis import asyncio as aioredis

from whatsapp_ingest.application.ports.connection_cache import ConnectionCache
from whatsapp_ingest.domain.entities.connection import Connection, Onboarding
from whatsapp_ingest.infrastructure.logging.logger import logger


class RedisConnectionCache(ConnectionCache):
    """Redis cache for onboarding and connection lookups using the cache-aside pattern."""

    ONBOARDING_KEY_PREFIX = "whatsapp:onboarding:"
    CONNECTION_KEY_PREFIX = "whatsapp:connection:"

    def __init__(
        self,
        redis_url: str,
        onboarding_ttl_seconds: int,
        connection_ttl_seconds: int,
    ) -> None:
        """
        Initialize Redis connection cache.

        Args:
            redis_url: Redis connection URL
            onboarding_ttl_seconds: Time-to-live for onboarding snapshots
            connection_ttl_seconds: Time-to-live for connection snapshots
        """
        self._redis_url = redis_url
        self._onboarding_ttl_seconds = onboarding_ttl_seconds
        self._connection_ttl_seconds = connection_ttl_seconds
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        """
        Get or create Redis client.

        Returns:
            Redis client instance
        """
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _onboarding_key(self, tracking_code: str) -> str:
        return f"{self.ONBOARDING_KEY_PREFIX}{tracking_code}"

    def _connection_key(self, organization_id: str, waba_id: str) -> str:
        return f"{self.CONNECTION_KEY_PREFIX}{organization_id}:{waba_id}"

    async def _read(self, key: str) -> Optional[dict[str, Any]]:
        try:
            client = await self._get_client()
            cached_data = await client.get(key)
            if cached_data is None:
                return None
            return json.loads(cached_data)
        except Exception as e:
            # treat as cache miss
            logger.warning(f"Error reading from cache for key {key}: {str(e)}")
            return None

    async def _write(self, key: str, data: dict[str, Any], ttl_seconds: int) -> None:
        try:
            client = await self._get_client()
            await client.setex(key, ttl_seconds, json.dumps(data))
        except Exception as e:
            logger.warning(f"Error writing to cache for key {key}: {str(e)}")

    async def _delete(self, key: str) -> None:
        try:
            client = await self._get_client()
            await client.delete(key)
        except Exception as e:
            logger.warning(f"Error deleting from cache for key {key}: {str(e)}")

    async def get_onboarding(self, tracking_code: str) -> Optional[Onboarding]:
        """
        Get onboarding session from cache.

        Args:
            tracking_code: Short-lived correlation code

        Returns:
            Onboarding entity, or None if not found in cache
        """
        data = await self._read(self._onboarding_key(tracking_code))
        if data is None:
            return None
        try:
            return Onboarding.from_dict(data)
        except (KeyError, ValueError) as e:
            logger.warning(f"Discarding malformed cached onboarding {tracking_code}: {str(e)}")
            return None

    async def cache_onboarding(self, onboarding: Onboarding) -> None:
        await self._write(
            self._onboarding_key(onboarding.tracking_code),
            onboarding.to_dict(),
            self._onboarding_ttl_seconds,
        )

    async def invalidate_onboarding(self, tracking_code: str) -> None:
        await self._delete(self._onboarding_key(tracking_code))

    async def cache_connection(self, connection: Connection) -> None:
        await self._write(
            self._connection_key(connection.organization_id, connection.waba_id),
            connection.to_dict(),
            self._connection_ttl_seconds,
        )

    async def invalidate_connection(self, organization_id: str, waba_id: str) -> None:
        await self._delete(self._connection_key(organization_id, waba_id))

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
