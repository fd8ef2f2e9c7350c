"""No-op connection cache for when caching is disabled."""

from typing import Optional

from whatsapp_ingest.application.ports.connection_cache import ConnectionCache
from whatsapp_ingest.domain.entities.connection import Connection, Onboarding


class NoOpConnectionCache(ConnectionCache):
    """No-op adapter: every lookup misses, every write is dropped."""

    async def get_onboarding(self, tracking_code: str) -> Optional[Onboarding]:
        """
        Always return None (cache miss).

        Args:
            tracking_code: Tracking code (ignored)

        Returns:
            Always None
        """
        return None

    async def cache_onboarding(self, onboarding: Onboarding) -> None:
        pass

    async def invalidate_onboarding(self, tracking_code: str) -> None:
        pass

    async def cache_connection(self, connection: Connection) -> None:
        pass

    async def invalidate_connection(self, organization_id: str, waba_id: str) -> None:
        pass
