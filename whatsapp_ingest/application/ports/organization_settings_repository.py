"""Organization-level settings consumed by the message handler."""

from abc import ABC, abstractmethod
from typing import Optional


class OrganizationSettingsRepository(ABC):
    """Port interface for per-organization ticket settings."""

    @abstractmethod
    async def get_ticket_expiration_days(self, organization_id: str) -> Optional[int]:
        """
        Get the configured ticket expiration window.

        Args:
            organization_id: Organization identifier

        Returns:
            Number of days, or None to use the default
        """
        pass

    @abstractmethod
    async def get_default_stage_id(self, organization_id: str) -> str:
        """
        Resolve the stage new tickets start in, creating one if the organization has none.

        Args:
            organization_id: Organization identifier

        Returns:
            Ticket stage identifier
        """
        pass
