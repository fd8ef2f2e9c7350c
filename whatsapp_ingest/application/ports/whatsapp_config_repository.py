"""WhatsApp config repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from whatsapp_ingest.domain.entities.whatsapp_config import HistorySyncStatus, WhatsAppConfig


class WhatsAppConfigRepository(ABC):
    """Port interface for the phone-number level config store."""

    @abstractmethod
    async def get_by_phone_number_id(self, phone_number_id: str) -> Optional[WhatsAppConfig]:
        """
        Get the config a webhook is addressed to.

        Args:
            phone_number_id: Provider phone number id from the payload metadata

        Returns:
            WhatsAppConfig entity, or None if the number is not registered
        """
        pass

    @abstractmethod
    async def touch_last_webhook(self, config_id: str, received_at: datetime) -> None:
        """Record the time of the latest processed webhook."""
        pass

    @abstractmethod
    async def update_history_sync(
        self,
        config_id: str,
        status: HistorySyncStatus,
        progress: Optional[int] = None,
        phase: Optional[int] = None,
        chunk_order: Optional[int] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> None:
        """
        Update the history import progress columns.

        Args:
            config_id: WhatsApp config identifier
            status: New history sync status
            progress: Cumulative progress percentage (unchanged when None)
            phase: Latest phase (unchanged when None)
            chunk_order: Latest chunk order (unchanged when None)
            started_at: Start timestamp, only written when the column is still empty
            completed_at: Completion timestamp (unchanged when None)
        """
        pass
