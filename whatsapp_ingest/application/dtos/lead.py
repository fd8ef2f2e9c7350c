"""Lead DTOs.

Leads are written through two distinct field sets: ``LeadCreate`` carries every
column including ``source``; ``LeadUpdate`` deliberately has no ``source`` so no
upsert path can overwrite a lead's provenance.
"""

from datetime import datetime
from typing import Optional

from whatsapp_ingest.application.dtos.base import DTO
from whatsapp_ingest.domain.entities.lead import LeadSource


class LeadCreate(DTO):
    """Fields of a lead being created."""

    organization_id: str
    wa_id: str
    phone: str
    source: LeadSource
    push_name: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None


class LeadUpdate(DTO):
    """Fields refreshed on an existing lead; None leaves a column untouched."""

    wa_id: Optional[str] = None
    push_name: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None
    reactivate: bool = False
