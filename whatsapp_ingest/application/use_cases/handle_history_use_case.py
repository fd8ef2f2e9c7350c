"""Handle history import webhooks (coexistence mode)."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from whatsapp_ingest.application.dtos.lead import LeadCreate, LeadUpdate
from whatsapp_ingest.application.dtos.message import MessageCreate
from whatsapp_ingest.application.dtos.results import HistoryImportResult
from whatsapp_ingest.application.errors import ConfigNotFoundError, InvalidPayloadError
from whatsapp_ingest.application.ports.unit_of_work import UnitOfWork
from whatsapp_ingest.application.use_cases.message_content import (
    extract_message_content,
    normalize_phone,
    parse_timestamp,
)
from whatsapp_ingest.domain.entities.lead import LeadSource
from whatsapp_ingest.domain.entities.message import MessageDirection, MessageSource
from whatsapp_ingest.domain.entities.whatsapp_config import HistorySyncStatus, WhatsAppConfig
from whatsapp_ingest.domain.value_objects.webhook_event_type import change_value_or_payload

COMPLETE_PROGRESS = 100
DEFAULT_HISTORY_STATUS = "read"


class HandleHistoryUseCase:
    """
    Bulk-import historical threads without ever opening a ticket.

    Each chunk is one unit of work. Threads and messages run inside savepoints so a
    failing item only rolls back its own writes.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._logger = logger

    def _log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self._logger:
            self._logger("history_handler", event, level, **kwargs)

    async def execute(self, payload: dict[str, Any]) -> HistoryImportResult:
        """
        Import every chunk of a history payload.

        Args:
            payload: Raw webhook payload or bare change value

        Returns:
            Import counters

        Raises:
            InvalidPayloadError: If the phone number id is missing
            ConfigNotFoundError: If no config is registered for the phone number id
        """
        value = change_value_or_payload(payload)
        phone_number_id = (value.get("metadata") or {}).get("phone_number_id")
        if not phone_number_id:
            raise InvalidPayloadError("History webhook has no metadata.phone_number_id")

        async with self._uow_factory() as uow:
            config = await uow.configs.get_by_phone_number_id(phone_number_id)
        if config is None:
            raise ConfigNotFoundError(phone_number_id)

        chunks = [c for c in value.get("history") or [] if isinstance(c, dict)]
        if not chunks:
            self._log("no_history_data", logging.WARNING, config_id=config.id)
            return HistoryImportResult()

        counters = {
            "chunks": 0,
            "threads_processed": 0,
            "threads_failed": 0,
            "messages_imported": 0,
            "messages_updated": 0,
            "messages_failed": 0,
        }
        for chunk in chunks:
            await self._import_chunk(config, chunk, counters)
            counters["chunks"] += 1

        return HistoryImportResult(**counters)

    def _parse_progress(self, raw: Any, chunk_order: Any) -> int:
        """Coerce the chunk progress to an int within 0..100; unreadable values count as 0."""
        if raw is None or raw == "":
            return 0
        try:
            progress = int(float(raw))
        except (TypeError, ValueError, OverflowError):
            self._log("invalid_progress", logging.WARNING, progress=repr(raw), chunk_order=chunk_order)
            return 0
        return max(0, min(progress, COMPLETE_PROGRESS))

    async def _import_chunk(
        self, config: WhatsAppConfig, chunk: dict[str, Any], counters: dict[str, int]
    ) -> None:
        metadata = chunk.get("metadata") or {}
        phase = metadata.get("phase")
        chunk_order = metadata.get("chunk_order")
        progress = self._parse_progress(metadata.get("progress"), chunk_order)
        now = datetime.now(timezone.utc)

        threads_before = counters["threads_processed"]
        imported_before = counters["messages_imported"]

        async with self._uow_factory() as uow:
            sync_log = await uow.history_syncs.start_chunk(config.id, phase, chunk_order, progress, now)

            for thread in chunk.get("threads") or []:
                try:
                    async with uow.savepoint():
                        thread_counts = await self._import_thread(uow, config, thread)
                    counters["threads_processed"] += 1
                    for key, count in thread_counts.items():
                        counters[key] += count
                except Exception as e:
                    counters["threads_failed"] += 1
                    self._log(
                        "thread_failed",
                        logging.ERROR,
                        thread_id=thread.get("id") if isinstance(thread, dict) else None,
                        error_type=type(e).__name__,
                        error=str(e),
                    )

            await uow.history_syncs.complete_chunk(
                sync_log.id,
                threads_processed=counters["threads_processed"] - threads_before,
                messages_imported=counters["messages_imported"] - imported_before,
            )

            if progress >= COMPLETE_PROGRESS:
                await uow.configs.update_history_sync(
                    config.id,
                    HistorySyncStatus.COMPLETED,
                    progress=progress,
                    phase=phase,
                    chunk_order=chunk_order,
                    completed_at=now,
                )
            else:
                await uow.configs.update_history_sync(
                    config.id,
                    HistorySyncStatus.SYNCING,
                    progress=progress,
                    phase=phase,
                    chunk_order=chunk_order,
                    started_at=now,
                )
            await uow.configs.touch_last_webhook(config.id, now)
            await uow.commit()

        self._log(
            "chunk_processed",
            config_id=config.id,
            phase=phase,
            chunk_order=chunk_order,
            progress=progress,
            threads=counters["threads_processed"] - threads_before,
            messages=counters["messages_imported"] - imported_before,
        )

    async def _import_thread(
        self,
        uow: UnitOfWork,
        config: WhatsAppConfig,
        thread: Any,
    ) -> dict[str, int]:
        context = thread.get("context") or {}
        wa_id = context.get("wa_id")
        if not wa_id:
            raise InvalidPayloadError(f"Thread {thread.get('id')!r} has no context.wa_id")

        now = datetime.now(timezone.utc)
        username = context.get("username")
        lead, _ = await uow.leads.upsert(
            LeadCreate(
                organization_id=config.organization_id,
                wa_id=wa_id,
                phone=normalize_phone(wa_id),
                source=LeadSource.HISTORY_SYNC,
                push_name=username,
                last_synced_at=now,
            ),
            LeadUpdate(push_name=username, last_synced_at=now),
        )
        conversation = await uow.conversations.upsert(config.organization_id, lead.id, config.id)

        counters = {"messages_imported": 0, "messages_updated": 0, "messages_failed": 0}
        for message in thread.get("messages") or []:
            wamid = message.get("id") if isinstance(message, dict) else None
            try:
                async with uow.savepoint():
                    created = await self._import_message(uow, config, lead.id, conversation.id, message)
            except Exception as e:
                counters["messages_failed"] += 1
                self._log(
                    "message_failed",
                    logging.ERROR,
                    wamid=wamid,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue
            if created is None:
                continue
            if created:
                counters["messages_imported"] += 1
            else:
                counters["messages_updated"] += 1
        return counters

    async def _import_message(
        self,
        uow: UnitOfWork,
        config: WhatsAppConfig,
        lead_id: str,
        conversation_id: str,
        message: Any,
    ) -> Optional[bool]:
        """Upsert one history message; None when it was skipped."""
        if not isinstance(message, dict):
            raise InvalidPayloadError(f"History message is not an object: {message!r}")
        if not message.get("id") or not message.get("from"):
            self._log("message_skipped", logging.WARNING, wamid=message.get("id"))
            return None

        history_context = message.get("history_context") or {}
        # history entries may omit the type for plain text
        content = extract_message_content({**message, "type": message.get("type") or "text"})
        _, created = await uow.messages.upsert_history(
            MessageCreate(
                wamid=message["id"],
                organization_id=config.organization_id,
                lead_id=lead_id,
                config_id=config.id,
                conversation_id=conversation_id,
                ticket_id=None,
                direction=(
                    MessageDirection.OUTBOUND
                    if history_context.get("from_me")
                    else MessageDirection.INBOUND
                ),
                type=content.type,
                body=content.body,
                media_url=content.media_url,
                status=history_context.get("status") or DEFAULT_HISTORY_STATUS,
                timestamp=parse_timestamp(message.get("timestamp")),
                source=MessageSource.HISTORY,
                raw_payload=message,
            )
        )
        return created
