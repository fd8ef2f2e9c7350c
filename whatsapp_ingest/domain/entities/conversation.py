"""Conversation entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Conversation:
    """Pairing of a lead with a WhatsApp config (phone number)."""

    id: str
    organization_id: str
    lead_id: str
    config_id: str
    message_count: int = 0
    provider_conversation_id: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
