"""Connection and onboarding repository ports."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from whatsapp_ingest.domain.entities.connection import Connection, Onboarding


class ConnectionRepository(ABC):
    """Port interface for provider-account connections."""

    @abstractmethod
    async def get(self, organization_id: str, waba_id: str) -> Optional[Connection]:
        """
        Get a connection by its natural key.

        Args:
            organization_id: Organization identifier
            waba_id: Provider account id

        Returns:
            Connection entity, or None if not found
        """
        pass

    @abstractmethod
    async def find_by_owner_business_id(self, owner_business_id: str) -> list[Connection]:
        """
        List connections that belong to an owner business.

        Args:
            owner_business_id: Provider business id owning the account

        Returns:
            Matching connections, oldest first
        """
        pass

    @abstractmethod
    async def upsert_active(
        self,
        organization_id: str,
        waba_id: str,
        owner_business_id: Optional[str],
        phone_number_id: Optional[str],
        connected_at: datetime,
    ) -> Connection:
        """
        Create or reactivate a connection keyed by (organization_id, waba_id).

        Args:
            organization_id: Organization identifier
            waba_id: Provider account id
            owner_business_id: Provider business id owning the account
            phone_number_id: Provider phone number id, when known
            connected_at: Connection timestamp

        Returns:
            Active connection entity
        """
        pass

    @abstractmethod
    async def activate(
        self,
        connection_id: str,
        connected_at: Optional[datetime] = None,
        waba_id: Optional[str] = None,
    ) -> Connection:
        """
        Set a connection back to active and clear its disconnect timestamp.

        Args:
            connection_id: Connection identifier
            connected_at: New connection timestamp (unchanged when None)
            waba_id: Provider account id to relink (unchanged when None)

        Returns:
            Updated connection entity
        """
        pass

    @abstractmethod
    async def deactivate(self, connection_id: str, disconnected_at: datetime) -> Connection:
        """Set a connection inactive with a disconnect timestamp."""
        pass


class OnboardingRepository(ABC):
    """Port interface for onboarding sessions."""

    @abstractmethod
    async def get_by_tracking_code(self, tracking_code: str) -> Optional[Onboarding]:
        """
        Get an onboarding session by its tracking code.

        Args:
            tracking_code: Short-lived correlation code

        Returns:
            Onboarding entity, or None if not found
        """
        pass

    @abstractmethod
    async def mark_expired(self, onboarding_id: str) -> None:
        """Mark a session expired."""
        pass

    @abstractmethod
    async def mark_completed(
        self,
        onboarding_id: str,
        waba_id: str,
        owner_business_id: Optional[str],
        phone_number_id: Optional[str],
        completed_at: datetime,
    ) -> Onboarding:
        """
        Mark a session completed with the resolved provider ids.

        Args:
            onboarding_id: Onboarding identifier
            waba_id: Provider account id
            owner_business_id: Provider business id owning the account
            phone_number_id: Provider phone number id, when known
            completed_at: Completion timestamp

        Returns:
            Updated onboarding entity
        """
        pass
