"""Message entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class MessageDirection(str, Enum):
    """Direction of a message relative to the business."""

    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class MessageSource(str, Enum):
    """How a message entered the system."""

    LIVE = "live"
    HISTORY = "history"


@dataclass
class Message:
    """Immutable message record keyed by the provider message id (wamid)."""

    id: str
    wamid: str
    organization_id: str
    lead_id: str
    config_id: str
    conversation_id: Optional[str]
    ticket_id: Optional[str]
    direction: MessageDirection
    type: str
    body: Optional[str]
    status: str
    timestamp: datetime
    source: MessageSource
    media_url: Optional[str] = None
    raw_payload: dict[str, Any] = field(default_factory=dict)
