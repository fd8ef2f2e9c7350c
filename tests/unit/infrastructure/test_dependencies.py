"""Unit tests for adapter wiring and shutdown."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from whatsapp_ingest.adapters.outbound.cache.noop_connection_cache import NoOpConnectionCache
from whatsapp_ingest.adapters.outbound.cache.redis_connection_cache import RedisConnectionCache
from whatsapp_ingest.adapters.outbound.realtime.redis_realtime_publisher import (
    RedisRealtimePublisher,
)
from whatsapp_ingest.infrastructure.config.settings import settings
from whatsapp_ingest.infrastructure.wiring import dependencies


@pytest.fixture
def redis_settings(monkeypatch):
    """Enable both Redis adapters and reset the shared instances around the test."""
    monkeypatch.setattr(settings, "redis_url", "redis://localhost:6379/0")
    monkeypatch.setattr(settings, "connection_cache_enabled", True)
    monkeypatch.setattr(settings, "realtime_enabled", True)
    factories = (
        dependencies.create_connection_cache,
        dependencies.create_realtime_publisher,
        dependencies.create_post_commit_dispatcher,
    )
    for factory in factories:
        factory.cache_clear()
    yield
    for factory in factories:
        factory.cache_clear()


def test_redis_adapters_are_shared(redis_settings):
    """Test the wiring hands out one cache and one publisher per process."""
    cache = dependencies.create_connection_cache()
    publisher = dependencies.create_realtime_publisher()

    assert isinstance(cache, RedisConnectionCache)
    assert isinstance(publisher, RedisRealtimePublisher)
    assert dependencies.create_connection_cache() is cache
    assert dependencies.create_realtime_publisher() is publisher


@pytest.mark.asyncio
async def test_shutdown_closes_redis_clients(redis_settings):
    """Test shutdown closes the cache and publisher clients."""
    cache_client = AsyncMock()
    publisher_client = AsyncMock()
    cache = dependencies.create_connection_cache()
    publisher = dependencies.create_realtime_publisher()
    cache._client = cache_client
    publisher._client = publisher_client

    await dependencies.shutdown_adapters()

    cache_client.close.assert_awaited_once()
    publisher_client.close.assert_awaited_once()
    assert cache._client is None
    assert publisher._client is None


@pytest.mark.asyncio
async def test_shutdown_tolerates_disabled_redis(monkeypatch, redis_settings):
    """Test shutdown is a no-op when Redis is not configured."""
    monkeypatch.setattr(settings, "redis_url", "")

    assert isinstance(dependencies.create_connection_cache(), NoOpConnectionCache)
    await dependencies.shutdown_adapters()


def test_app_lifespan_shuts_adapters_down():
    """Test leaving the application lifespan runs the adapter shutdown."""
    from whatsapp_ingest.main import app

    with patch("whatsapp_ingest.main.shutdown_adapters", new_callable=AsyncMock) as shutdown:
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            shutdown.assert_not_awaited()

    shutdown.assert_awaited_once()
