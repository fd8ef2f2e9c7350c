"""Ticket tracking (attribution) repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from whatsapp_ingest.domain.entities.ticket import TicketTracking
from whatsapp_ingest.domain.value_objects.attribution import Attribution


class TicketTrackingRepository(ABC):
    """Port interface for last-touch attribution storage."""

    @abstractmethod
    async def get_by_ticket(self, ticket_id: str) -> Optional[TicketTracking]:
        """
        Get the tracking row of a ticket.

        Args:
            ticket_id: Ticket identifier

        Returns:
            TicketTracking entity, or None if the ticket has no attribution yet
        """
        pass

    @abstractmethod
    async def create(self, ticket_id: str, attribution: Attribution) -> TicketTracking:
        """
        Create the tracking row of a ticket with enrichment pending.

        Args:
            ticket_id: Ticket identifier
            attribution: Extracted tracking fields

        Returns:
            Created TicketTracking entity
        """
        pass

    @abstractmethod
    async def update(self, tracking_id: str, fields: dict[str, Any]) -> None:
        """
        Overwrite the given columns of a tracking row.

        Args:
            tracking_id: TicketTracking identifier
            fields: Column name to value mapping
        """
        pass

    @abstractmethod
    async def add_history(
        self,
        tracking_id: str,
        old_ad_id: Optional[str],
        new_ad_id: Optional[str],
        changed_at: datetime,
    ) -> None:
        """Append an ad-id change to the attribution history."""
        pass
