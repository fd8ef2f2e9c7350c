"""Outbound notification DTOs (real-time events and audit entries)."""

from typing import Any, Optional

from pydantic import Field

from whatsapp_ingest.application.dtos.base import DTO


class RealtimeNotification(DTO):
    """Event to be fanned out on a real-time channel."""

    channel: str
    payload: dict[str, Any]


class AuditEntry(DTO):
    """Structured audit-log event for the connection lifecycle."""

    organization_id: str
    action: str
    description: Optional[str] = None
    tracking_code: Optional[str] = None
    connection_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
