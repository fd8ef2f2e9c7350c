"""History sync log entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

HISTORY_SYNC_PROCESSING = "processing"
HISTORY_SYNC_COMPLETED = "completed"


@dataclass
class HistorySyncLog:
    """One row per (config, phase, chunk) of a history import."""

    id: str
    connection_id: str
    phase: Optional[int]
    chunk_order: Optional[int]
    progress: int
    status: str
    messages_imported: int = 0
    threads_processed: int = 0
    last_payload_at: Optional[datetime] = None
