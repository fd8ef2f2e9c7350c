"""Ticket DTOs."""

from datetime import datetime
from typing import Optional

from whatsapp_ingest.application.dtos.base import DTO
from whatsapp_ingest.domain.entities.ticket import TICKET_SOURCE_INCOMING_MESSAGE, TicketOrigin


class TicketCreate(DTO):
    """Fields of a ticket being opened."""

    organization_id: str
    conversation_id: str
    lead_id: str
    stage_id: Optional[str] = None
    source: str = TICKET_SOURCE_INCOMING_MESSAGE
    originated_from: TicketOrigin
    window_expires_at: Optional[datetime] = None
    window_open: bool = False
    created_at: datetime
