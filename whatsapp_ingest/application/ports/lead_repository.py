"""Lead repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from whatsapp_ingest.application.dtos.lead import LeadCreate, LeadUpdate
from whatsapp_ingest.domain.entities.lead import Lead


class LeadRepository(ABC):
    """Port interface for lead repository."""

    @abstractmethod
    async def find_by_identity(
        self, organization_id: str, wa_id: str, phone: Optional[str] = None
    ) -> Optional[Lead]:
        """
        Find a lead by contact id, or by phone when no contact id matches.

        Args:
            organization_id: Organization identifier
            wa_id: Provider-assigned contact id
            phone: Normalized phone number

        Returns:
            Lead entity, or None if not found
        """
        pass

    @abstractmethod
    async def create(self, data: LeadCreate) -> Lead:
        """
        Create a lead.

        Args:
            data: Full creation field set (including source)

        Returns:
            Created lead entity
        """
        pass

    @abstractmethod
    async def get_or_create(self, data: LeadCreate) -> tuple[Lead, bool]:
        """
        Create a lead, or return the one a concurrent writer created first.

        Args:
            data: Full creation field set (including source)

        Returns:
            Tuple of (lead entity, True if this call created it)
        """
        pass

    @abstractmethod
    async def update(self, lead_id: str, data: LeadUpdate) -> Lead:
        """
        Refresh mutable fields of an existing lead.

        Args:
            lead_id: Lead identifier
            data: Update field set (never includes source)

        Returns:
            Updated lead entity
        """
        pass

    @abstractmethod
    async def upsert(self, create: LeadCreate, update: LeadUpdate) -> tuple[Lead, bool]:
        """
        Create or update a lead keyed by (organization_id, wa_id).

        Args:
            create: Field set used when the lead does not exist
            update: Field set used when it does

        Returns:
            Tuple of (lead entity, True if it was created)
        """
        pass

    @abstractmethod
    async def deactivate(self, lead_id: str, deleted_at: datetime) -> None:
        """Soft-delete a lead."""
        pass
