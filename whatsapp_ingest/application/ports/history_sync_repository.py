"""History sync log repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from whatsapp_ingest.domain.entities.history_sync import HistorySyncLog


class HistorySyncRepository(ABC):
    """Port interface for per-chunk history import logs."""

    @abstractmethod
    async def start_chunk(
        self,
        connection_id: str,
        phase: Optional[int],
        chunk_order: Optional[int],
        progress: int,
        received_at: datetime,
    ) -> HistorySyncLog:
        """
        Create or reopen the log row of a chunk keyed by (connection_id, phase, chunk_order).

        Args:
            connection_id: WhatsApp config identifier
            phase: Import phase
            chunk_order: Order of the chunk within the phase
            progress: Cumulative progress percentage reported by the provider
            received_at: Payload reception time

        Returns:
            HistorySyncLog entity in processing status
        """
        pass

    @abstractmethod
    async def complete_chunk(self, log_id: str, threads_processed: int, messages_imported: int) -> None:
        """Mark a chunk completed with its counters."""
        pass
