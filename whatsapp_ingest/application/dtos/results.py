"""Handler result DTOs."""

from typing import Optional

from whatsapp_ingest.application.dtos.base import DTO


class MessageBatchResult(DTO):
    """Counters of a live message batch."""

    processed: int = 0
    duplicates: int = 0
    skipped: int = 0
    failed: int = 0


class HistoryImportResult(DTO):
    """Counters of a history payload."""

    chunks: int = 0
    threads_processed: int = 0
    threads_failed: int = 0
    messages_imported: int = 0
    messages_updated: int = 0
    messages_failed: int = 0


class StateSyncResult(DTO):
    """Counters of a contact-directory sync payload."""

    upserted: int = 0
    deleted: int = 0
    not_found: int = 0
    skipped: int = 0
    failed: int = 0


class OnboardingResult(DTO):
    """Outcome of an account update."""

    outcome: str
    connection_id: Optional[str] = None
    organization_id: Optional[str] = None
