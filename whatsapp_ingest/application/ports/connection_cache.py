"""Connection cache port."""

from abc import ABC, abstractmethod
from typing import Optional

from whatsapp_ingest.domain.entities.connection import Connection, Onboarding


class ConnectionCache(ABC):
    """Port interface for the fast store holding onboarding sessions and connection snapshots."""

    @abstractmethod
    async def get_onboarding(self, tracking_code: str) -> Optional[Onboarding]:
        """
        Get a cached onboarding session.

        Args:
            tracking_code: Short-lived correlation code

        Returns:
            Onboarding entity, or None on a miss
        """
        pass

    @abstractmethod
    async def cache_onboarding(self, onboarding: Onboarding) -> None:
        """Store an onboarding snapshot."""
        pass

    @abstractmethod
    async def invalidate_onboarding(self, tracking_code: str) -> None:
        """Drop a cached onboarding session."""
        pass

    @abstractmethod
    async def cache_connection(self, connection: Connection) -> None:
        """Store a connection snapshot."""
        pass

    @abstractmethod
    async def invalidate_connection(self, organization_id: str, waba_id: str) -> None:
        """Drop a cached connection."""
        pass

    async def close(self) -> None:
        """Release the underlying connection, if any."""
        pass
