"""Unit tests for Redis connection cache."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from whatsapp_ingest.adapters.outbound.cache.redis_connection_cache import RedisConnectionCache
from whatsapp_ingest.domain.entities.connection import (
    Connection,
    ConnectionStatus,
    Onboarding,
    OnboardingStatus,
)

FROM_URL = "whatsapp_ingest.adapters.outbound.cache.redis_connection_cache.aioredis.from_url"


@pytest.fixture
def mock_redis_client():
    """Create a mock Redis client."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def redis_cache():
    """Create Redis connection cache with test config."""
    return RedisConnectionCache(
        "redis://localhost:6379/0", onboarding_ttl_seconds=900, connection_ttl_seconds=3600
    )


@pytest.fixture
def sample_onboarding():
    """Create a sample pending onboarding session."""
    return Onboarding(
        id="onb-1",
        tracking_code="TRACK-1",
        organization_id="org-1",
        expires_at=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        status=OnboardingStatus.PENDING,
    )


@pytest.mark.asyncio
async def test_get_onboarding_returns_none_when_not_cached(redis_cache, mock_redis_client):
    """Test get_onboarding returns None on a cache miss."""
    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client

        result = await redis_cache.get_onboarding("TRACK-1")

        assert result is None
        mock_redis_client.get.assert_called_once_with("whatsapp:onboarding:TRACK-1")


@pytest.mark.asyncio
async def test_get_onboarding_returns_cached_snapshot(
    redis_cache, mock_redis_client, sample_onboarding
):
    """Test get_onboarding deserializes a cached snapshot."""
    mock_redis_client.get.return_value = json.dumps(sample_onboarding.to_dict())

    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client

        result = await redis_cache.get_onboarding("TRACK-1")

        assert result == sample_onboarding


@pytest.mark.asyncio
async def test_malformed_snapshot_is_a_miss(redis_cache, mock_redis_client):
    """Test a cached value missing required fields is discarded."""
    mock_redis_client.get.return_value = json.dumps({"tracking_code": "TRACK-1"})

    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client

        assert await redis_cache.get_onboarding("TRACK-1") is None


@pytest.mark.asyncio
async def test_cache_onboarding_uses_onboarding_ttl(
    redis_cache, mock_redis_client, sample_onboarding
):
    """Test onboarding snapshots are written with their own TTL."""
    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client

        await redis_cache.cache_onboarding(sample_onboarding)

        key, ttl, raw = mock_redis_client.setex.call_args.args
        assert key == "whatsapp:onboarding:TRACK-1"
        assert ttl == 900
        assert json.loads(raw)["status"] == "pending"


@pytest.mark.asyncio
async def test_cache_and_invalidate_connection(redis_cache, mock_redis_client):
    """Test connection snapshots are keyed by organization and waba id."""
    connection = Connection(
        id="conn-1",
        organization_id="org-1",
        waba_id="WABA-9",
        status=ConnectionStatus.ACTIVE,
        connected_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )

    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client

        await redis_cache.cache_connection(connection)
        await redis_cache.invalidate_connection("org-1", "WABA-9")

        key, ttl, raw = mock_redis_client.setex.call_args.args
        assert key == "whatsapp:connection:org-1:WABA-9"
        assert ttl == 3600
        assert json.loads(raw)["status"] == "active"
        mock_redis_client.delete.assert_called_once_with("whatsapp:connection:org-1:WABA-9")


@pytest.mark.asyncio
async def test_redis_errors_never_raise(redis_cache, mock_redis_client, sample_onboarding):
    """Test Redis failures degrade to misses and dropped writes."""
    mock_redis_client.get.side_effect = ConnectionError("redis down")
    mock_redis_client.setex.side_effect = ConnectionError("redis down")
    mock_redis_client.delete.side_effect = ConnectionError("redis down")

    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client

        assert await redis_cache.get_onboarding("TRACK-1") is None
        await redis_cache.cache_onboarding(sample_onboarding)
        await redis_cache.invalidate_onboarding("TRACK-1")


@pytest.mark.asyncio
async def test_close_closes_client(redis_cache, mock_redis_client):
    """Test close releases the Redis client."""
    with patch(FROM_URL, new_callable=AsyncMock) as mock_from_url:
        mock_from_url.return_value = mock_redis_client
        await redis_cache.get_onboarding("TRACK-1")

    await redis_cache.close()

    mock_redis_client.close.assert_called_once()
    assert redis_cache._client is None
