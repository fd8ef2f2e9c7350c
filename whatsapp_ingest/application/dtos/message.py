"""Message DTOs."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from whatsapp_ingest.application.dtos.base import DTO
from whatsapp_ingest.domain.entities.message import MessageDirection, MessageSource


class MessageCreate(DTO):
    """Fields of a message being persisted."""

    wamid: str
    organization_id: str
    lead_id: str
    config_id: str
    conversation_id: Optional[str] = None
    ticket_id: Optional[str] = None
    direction: MessageDirection
    type: str
    body: Optional[str] = None
    media_url: Optional[str] = None
    status: str
    timestamp: datetime
    source: MessageSource
    raw_payload: dict[str, Any] = Field(default_factory=dict)


class MessageContent(DTO):
    """Displayable content extracted from a raw message."""

    type: str
    body: Optional[str] = None
    media_url: Optional[str] = None
