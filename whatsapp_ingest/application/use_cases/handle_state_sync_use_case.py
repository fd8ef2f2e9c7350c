"""Handle contact-directory sync webhooks (smb_app_state_sync)."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from whatsapp_ingest.application.dtos.lead import LeadCreate, LeadUpdate
from whatsapp_ingest.application.dtos.results import StateSyncResult
from whatsapp_ingest.application.errors import ConfigNotFoundError, InvalidPayloadError
from whatsapp_ingest.application.ports.unit_of_work import UnitOfWork
from whatsapp_ingest.application.use_cases.message_content import normalize_phone
from whatsapp_ingest.domain.entities.lead import LeadSource
from whatsapp_ingest.domain.entities.whatsapp_config import HistorySyncStatus, WhatsAppConfig
from whatsapp_ingest.domain.value_objects.webhook_event_type import change_value_or_payload

CONTACT_ITEM = "contact"
UPSERT_ACTIONS = ("add", "update")
DELETE_ACTION = "delete"
UNKNOWN_CONTACT_NAME = "Unknown"


class HandleStateSyncUseCase:
    """Reconcile a contact-directory snapshot into Leads. Never opens tickets."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._logger = logger

    def _log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self._logger:
            self._logger("state_sync_handler", event, level, **kwargs)

    async def execute(self, payload: dict[str, Any]) -> StateSyncResult:
        """
        Apply every contact item of a directory sync payload.

        Args:
            payload: Raw webhook payload or bare change value

        Returns:
            Sync counters

        Raises:
            InvalidPayloadError: If the phone number id is missing
            ConfigNotFoundError: If no config is registered for the phone number id
        """
        value = change_value_or_payload(payload)
        phone_number_id = (value.get("metadata") or {}).get("phone_number_id")
        if not phone_number_id:
            raise InvalidPayloadError("State sync webhook has no metadata.phone_number_id")

        async with self._uow_factory() as uow:
            config = await uow.configs.get_by_phone_number_id(phone_number_id)
            if config is None:
                raise ConfigNotFoundError(phone_number_id)

            counters = {"upserted": 0, "deleted": 0, "not_found": 0, "skipped": 0, "failed": 0}
            for item in value.get("state_sync") or []:
                try:
                    async with uow.savepoint():
                        outcome = await self._apply_item(uow, config, item)
                except Exception as e:
                    counters["failed"] += 1
                    self._log(
                        "item_failed",
                        logging.ERROR,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    continue
                counters[outcome] += 1

            now = datetime.now(timezone.utc)
            await uow.configs.touch_last_webhook(config.id, now)
            if config.history_sync_status == HistorySyncStatus.PENDING_CONSENT:
                await uow.configs.update_history_sync(
                    config.id, HistorySyncStatus.PENDING_HISTORY, started_at=now
                )
                self._log("history_sync_pending", config_id=config.id)
            await uow.commit()

        result = StateSyncResult(**counters)
        self._log("sync_completed", config_id=config.id, **result.model_dump())
        return result

    async def _apply_item(self, uow: UnitOfWork, config: WhatsAppConfig, item: Any) -> str:
        if not isinstance(item, dict) or item.get("type") != CONTACT_ITEM:
            return "skipped"

        contact = item.get("contact") or {}
        wa_id = contact.get("wa_id") or contact.get("phone_number")
        if not wa_id:
            self._log("contact_skipped", logging.WARNING, reason="missing wa_id")
            return "skipped"

        phone = normalize_phone(wa_id)
        action = item.get("action")

        if action in UPSERT_ACTIONS:
            now = datetime.now(timezone.utc)
            display_name = contact.get("full_name") or contact.get("first_name") or UNKNOWN_CONTACT_NAME
            lead, created = await uow.leads.upsert(
                LeadCreate(
                    organization_id=config.organization_id,
                    wa_id=wa_id,
                    phone=phone,
                    source=LeadSource.STATE_SYNC,
                    push_name=display_name,
                    last_synced_at=now,
                ),
                LeadUpdate(push_name=display_name, last_synced_at=now, reactivate=True),
            )
            self._log("contact_upserted", lead_id=lead.id, action=action, created=created)
            return "upserted"

        if action == DELETE_ACTION:
            lead = await uow.leads.find_by_identity(config.organization_id, wa_id, phone)
            if lead is None:
                self._log("contact_not_found", wa_id=wa_id)
                return "not_found"
            await uow.leads.deactivate(lead.id, datetime.now(timezone.utc))
            self._log("contact_deactivated", lead_id=lead.id)
            return "deleted"

        self._log("contact_skipped", logging.WARNING, reason="unknown action", action=action)
        return "skipped"
