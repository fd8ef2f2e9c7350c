"""Message repository port."""

from abc import ABC, abstractmethod

from whatsapp_ingest.application.dtos.message import MessageCreate
from whatsapp_ingest.domain.entities.message import Message


class MessageRepository(ABC):
    """Port interface for message repository."""

    @abstractmethod
    async def exists(self, wamid: str) -> bool:
        """
        Check whether a message with this provider id was already persisted.

        Args:
            wamid: Provider message id

        Returns:
            True if the message exists
        """
        pass

    @abstractmethod
    async def create(self, data: MessageCreate) -> Message:
        """
        Insert a message.

        Args:
            data: Message fields

        Returns:
            Created message entity

        Raises:
            DuplicateMessageError: If the wamid unique constraint is violated
        """
        pass

    @abstractmethod
    async def upsert_history(self, data: MessageCreate) -> tuple[Message, bool]:
        """
        Insert a history message or, if the wamid exists, refresh only its status.

        Args:
            data: Message fields (ticket_id is always None for history)

        Returns:
            Tuple of (message entity, True if it was created)
        """
        pass
