"""Ticket repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from whatsapp_ingest.application.dtos.ticket import TicketCreate
from whatsapp_ingest.domain.entities.ticket import Ticket


class TicketRepository(ABC):
    """Port interface for ticket repository."""

    @abstractmethod
    async def find_open(self, conversation_id: str) -> Optional[Ticket]:
        """
        Get the most recent open ticket of a conversation.

        Args:
            conversation_id: Conversation identifier

        Returns:
            Ticket entity, or None if the conversation has no open ticket
        """
        pass

    @abstractmethod
    async def create(self, data: TicketCreate) -> Ticket:
        """Open a ticket."""
        pass

    @abstractmethod
    async def close(self, ticket_id: str, reason: str, closed_at: datetime) -> None:
        """Close a ticket with a reason."""
        pass

    @abstractmethod
    async def renew_window(self, ticket_id: str, window_expires_at: datetime) -> None:
        """Reopen the message window of a ticket until the given time."""
        pass

    @abstractmethod
    async def increment_message_count(self, ticket_id: str) -> None:
        """Increment the ticket's message counter."""
        pass
