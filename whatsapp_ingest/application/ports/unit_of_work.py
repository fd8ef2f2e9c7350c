"""Unit of work port."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Optional

from whatsapp_ingest.application.ports.connection_repository import (
    ConnectionRepository,
    OnboardingRepository,
)
from whatsapp_ingest.application.ports.conversation_repository import ConversationRepository
from whatsapp_ingest.application.ports.history_sync_repository import HistorySyncRepository
from whatsapp_ingest.application.ports.lead_repository import LeadRepository
from whatsapp_ingest.application.ports.message_repository import MessageRepository
from whatsapp_ingest.application.ports.organization_settings_repository import (
    OrganizationSettingsRepository,
)
from whatsapp_ingest.application.ports.ticket_repository import TicketRepository
from whatsapp_ingest.application.ports.ticket_tracking_repository import (
    TicketTrackingRepository,
)
from whatsapp_ingest.application.ports.whatsapp_config_repository import (
    WhatsAppConfigRepository,
)


class UnitOfWork(ABC):
    """
    One database transaction shared by every repository it exposes.

    Use as ``async with uow_factory() as uow:``; leaving the block without calling
    ``commit()`` rolls the transaction back.
    """

    configs: WhatsAppConfigRepository
    leads: LeadRepository
    conversations: ConversationRepository
    tickets: TicketRepository
    trackings: TicketTrackingRepository
    messages: MessageRepository
    connections: ConnectionRepository
    onboardings: OnboardingRepository
    history_syncs: HistorySyncRepository
    organizations: OrganizationSettingsRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> Optional[bool]:
        await self.rollback()
        await self.close()
        return None

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Roll back anything not yet committed."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying session."""
        pass

    @abstractmethod
    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """
        Open a nested transaction.

        Exiting the context normally releases the savepoint; an exception rolls back
        only the work done inside it and is re-raised.

        Returns:
            Async context manager
        """
        pass
