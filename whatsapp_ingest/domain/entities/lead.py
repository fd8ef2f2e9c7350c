"""Lead entity."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class LeadSource(str, Enum):
    """Provenance of a lead, fixed at creation."""

    LIVE_MESSAGE = "live_message"
    OUTBOUND_MESSAGE = "outbound_message"
    HISTORY_SYNC = "history_sync"
    STATE_SYNC = "state_sync"


@dataclass
class Lead:
    """Contact identity tracked per organization."""

    id: str
    organization_id: str
    wa_id: str
    phone: str
    source: LeadSource
    push_name: Optional[str] = None
    is_active: bool = True
    deleted_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_from_history(self) -> bool:
        """Whether the lead was first seen through a history import."""
        return self.source == LeadSource.HISTORY_SYNC
