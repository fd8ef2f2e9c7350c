"""WhatsApp config entity (a phone number attached to an organization)."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class HistorySyncStatus(str, Enum):
    """Progress of the coexistence history import."""

    PENDING_CONSENT = "pending_consent"
    PENDING_HISTORY = "pending_history"
    SYNCING = "syncing"
    COMPLETED = "completed"


@dataclass
class WhatsAppConfig:
    """Phone-number level configuration the webhooks are addressed to."""

    id: str
    organization_id: str
    phone_number_id: str
    waba_id: Optional[str] = None
    last_webhook_at: Optional[datetime] = None
    history_sync_status: Optional[HistorySyncStatus] = None
    history_sync_progress: int = 0
    history_sync_phase: Optional[int] = None
    history_sync_chunk_order: Optional[int] = None
    history_sync_started_at: Optional[datetime] = None
    history_sync_completed_at: Optional[datetime] = None
