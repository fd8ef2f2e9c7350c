"""Conversation repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from whatsapp_ingest.domain.entities.conversation import Conversation


class ConversationRepository(ABC):
    """Port interface for conversation repository."""

    @abstractmethod
    async def upsert(
        self,
        organization_id: str,
        lead_id: str,
        config_id: str,
        provider_conversation_id: Optional[str] = None,
    ) -> Conversation:
        """
        Get or create the conversation of a lead on a config.

        Args:
            organization_id: Organization identifier
            lead_id: Lead identifier
            config_id: WhatsApp config identifier
            provider_conversation_id: Provider's own conversation id, linked when supplied

        Returns:
            Conversation entity
        """
        pass

    @abstractmethod
    async def increment_message_count(self, conversation_id: str, last_message_at: datetime) -> None:
        """Increment the running message counter."""
        pass
