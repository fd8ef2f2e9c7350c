"""Ticket and attribution tracking entities."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class TicketStatus(str, Enum):
    """Ticket lifecycle status."""

    OPEN = "open"
    CLOSED = "closed"


class TicketOrigin(str, Enum):
    """Whether a ticket was opened for a brand new contact or a history-imported one."""

    NEW_CONTACT = "new_contact"
    HISTORY_LEAD = "history_lead"


class EnrichmentStatus(str, Enum):
    """Ad-enrichment state of a ticket's tracking row."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TICKET_SOURCE_INCOMING_MESSAGE = "incoming_message"
CLOSED_REASON_EXPIRED_ATTRIBUTION = "expired_attribution"


@dataclass
class Ticket:
    """Unit of work bound to a conversation."""

    id: str
    organization_id: str
    conversation_id: str
    lead_id: str
    stage_id: Optional[str]
    status: TicketStatus
    source: str
    originated_from: TicketOrigin
    created_at: datetime
    window_expires_at: Optional[datetime] = None
    window_open: bool = False
    message_count: int = 0
    closed_reason: Optional[str] = None
    closed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """Whether the ticket is still open."""
        return self.status == TicketStatus.OPEN


@dataclass
class TicketTracking:
    """Last-touch attribution for a ticket."""

    id: str
    ticket_id: str
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_content: Optional[str] = None
    utm_term: Optional[str] = None
    fbclid: Optional[str] = None
    gclid: Optional[str] = None
    ctwaclid: Optional[str] = None
    meta_ad_id: Optional[str] = None
    source_type: Optional[str] = None
    placement: Optional[str] = None
    source_url: Optional[str] = None
    headline: Optional[str] = None
    enrichment_status: EnrichmentStatus = EnrichmentStatus.PENDING
    enrichment_error: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class AttributionHistoryEntry:
    """Record of an ad-id change on a ticket's tracking row."""

    id: str
    ticket_tracking_id: str
    old_ad_id: Optional[str]
    new_ad_id: Optional[str]
    changed_at: datetime
