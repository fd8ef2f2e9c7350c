"""Handle live message webhooks (inbound messages and outbound echoes)."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from whatsapp_ingest.application.dtos.lead import LeadCreate, LeadUpdate
from whatsapp_ingest.application.dtos.message import MessageCreate
from whatsapp_ingest.application.dtos.notifications import RealtimeNotification
from whatsapp_ingest.application.dtos.results import MessageBatchResult
from whatsapp_ingest.application.dtos.ticket import TicketCreate
from whatsapp_ingest.application.errors import (
    ConfigNotFoundError,
    DuplicateMessageError,
    InvalidPayloadError,
)
from whatsapp_ingest.application.ports.unit_of_work import UnitOfWork
from whatsapp_ingest.application.use_cases.message_content import (
    extract_message_content,
    normalize_phone,
    parse_timestamp,
)
from whatsapp_ingest.application.use_cases.post_commit import PostCommitDispatcher
from whatsapp_ingest.domain.entities.conversation import Conversation
from whatsapp_ingest.domain.entities.lead import LeadSource
from whatsapp_ingest.domain.entities.message import Message, MessageDirection, MessageSource
from whatsapp_ingest.domain.entities.ticket import CLOSED_REASON_EXPIRED_ATTRIBUTION, EnrichmentStatus
from whatsapp_ingest.domain.entities.whatsapp_config import WhatsAppConfig
from whatsapp_ingest.domain.policies.ticket_window_policy import TicketWindowPolicy
from whatsapp_ingest.domain.value_objects.attribution import Attribution, extract_attribution
from whatsapp_ingest.domain.value_objects.webhook_event_type import first_change

INBOUND_STATUS = "received"
ECHO_STATUS = "sent"


class _Outcome(str, Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    SKIPPED = "skipped"


class HandleMessageUseCase:
    """
    Turn live message entries into Lead, Conversation, Ticket and Message state.

    Every message runs in its own unit of work; a failing message is logged and the
    batch moves on. Only payload-level problems (no change value, no phone number id,
    unknown config) raise.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        dispatcher: PostCommitDispatcher,
        window_policy: Optional[TicketWindowPolicy] = None,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize handle message use case.

        Args:
            uow_factory: Factory returning a fresh unit of work
            dispatcher: Post-commit real-time fan-out
            window_policy: Ticket expiry and window policy
            logger: Optional structured logger function (component, event, level, **kwargs)
        """
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher
        self._window_policy = window_policy or TicketWindowPolicy()
        self._logger = logger

    def _log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self._logger:
            self._logger("message_handler", event, level, **kwargs)

    async def execute(self, payload: dict[str, Any], echo_only: bool = False) -> MessageBatchResult:
        """
        Process every message of a ``messages`` (or ``smb_message_echoes``) change.

        Args:
            payload: Raw webhook payload
            echo_only: True for ``smb_message_echoes`` changes, whose entries are all echoes

        Returns:
            Batch counters

        Raises:
            InvalidPayloadError: If the change value or phone number id is missing
            ConfigNotFoundError: If no config is registered for the phone number id
        """
        change = first_change(payload)
        value = change.get("value") if change else None
        if not isinstance(value, dict):
            raise InvalidPayloadError("Message webhook has no change value")

        phone_number_id = (value.get("metadata") or {}).get("phone_number_id")
        if not phone_number_id:
            raise InvalidPayloadError("Message webhook has no metadata.phone_number_id")

        async with self._uow_factory() as uow:
            config = await uow.configs.get_by_phone_number_id(phone_number_id)
        if config is None:
            raise ConfigNotFoundError(phone_number_id)

        entries: list[tuple[dict[str, Any], bool]] = []
        if not echo_only:
            entries.extend((m, False) for m in value.get("messages") or [])
        entries.extend((m, True) for m in value.get("message_echoes") or [])

        profile_names = {
            contact.get("wa_id"): (contact.get("profile") or {}).get("name")
            for contact in value.get("contacts") or []
            if isinstance(contact, dict)
        }
        provider_conversation_id = value.get("conversation_id")

        counters = {"processed": 0, "duplicates": 0, "skipped": 0, "failed": 0}
        for message, is_echo in entries:
            wamid = message.get("id") if isinstance(message, dict) else None
            try:
                outcome = await self._process_message(
                    config, message, is_echo, profile_names, provider_conversation_id
                )
            except DuplicateMessageError:
                # lost the race on the wamid unique constraint
                self._log("duplicate_skipped", wamid=wamid, race=True)
                counters["duplicates"] += 1
                continue
            except Exception as e:
                self._log(
                    "message_failed",
                    logging.ERROR,
                    wamid=wamid,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                counters["failed"] += 1
                continue

            if outcome is _Outcome.PROCESSED:
                counters["processed"] += 1
            elif outcome is _Outcome.DUPLICATE:
                counters["duplicates"] += 1
            else:
                counters["skipped"] += 1

        async with self._uow_factory() as uow:
            await uow.configs.touch_last_webhook(config.id, datetime.now(timezone.utc))
            await uow.commit()

        result = MessageBatchResult(**counters)
        self._log(
            "batch_completed",
            config_id=config.id,
            echo_only=echo_only,
            **result.model_dump(),
        )
        return result

    async def _process_message(
        self,
        config: WhatsAppConfig,
        message: Any,
        is_echo: bool,
        profile_names: dict[str, Optional[str]],
        provider_conversation_id: Optional[str],
    ) -> _Outcome:
        if not isinstance(message, dict):
            raise InvalidPayloadError(f"Message entry is not an object: {message!r}")

        wamid = message.get("id")
        contact_id = message.get("to") if is_echo else message.get("from")
        if not wamid or not contact_id:
            self._log("message_skipped", logging.WARNING, wamid=wamid, reason="missing id or contact")
            return _Outcome.SKIPPED

        content = extract_message_content(message)
        event_at = parse_timestamp(message.get("timestamp"))
        organization_id = config.organization_id
        notifications: list[RealtimeNotification] = []

        async with self._uow_factory() as uow:
            if await uow.messages.exists(wamid):
                self._log("duplicate_skipped", wamid=wamid)
                return _Outcome.DUPLICATE

            phone = normalize_phone(contact_id)
            push_name = None if is_echo else profile_names.get(contact_id)
            existing = await uow.leads.find_by_identity(organization_id, contact_id, phone)
            if existing is None:
                lead, created = await uow.leads.get_or_create(
                    LeadCreate(
                        organization_id=organization_id,
                        wa_id=contact_id,
                        phone=phone,
                        source=LeadSource.OUTBOUND_MESSAGE if is_echo else LeadSource.LIVE_MESSAGE,
                        push_name=push_name,
                        last_message_at=event_at,
                    )
                )
                if not created:
                    existing = lead
            was_history_lead = existing is not None and existing.is_from_history
            if existing is not None:
                lead = await uow.leads.update(
                    existing.id,
                    LeadUpdate(wa_id=contact_id, push_name=push_name, last_message_at=event_at),
                )

            conversation = await uow.conversations.upsert(
                organization_id, lead.id, config.id, provider_conversation_id
            )

            ticket = await uow.tickets.find_open(conversation.id)
            if ticket is not None and not is_echo:
                expiration_days = await uow.organizations.get_ticket_expiration_days(
                    organization_id
                )
                if self._window_policy.is_expired(ticket, event_at, expiration_days):
                    await uow.tickets.close(ticket.id, CLOSED_REASON_EXPIRED_ATTRIBUTION, event_at)
                    self._log("ticket_expired", ticket_id=ticket.id, wamid=wamid)
                    ticket = None

            if ticket is None:
                window = self._window_policy.window_for_new_ticket(event_at, was_history_lead)
                ticket = await uow.tickets.create(
                    TicketCreate(
                        organization_id=organization_id,
                        conversation_id=conversation.id,
                        lead_id=lead.id,
                        stage_id=await uow.organizations.get_default_stage_id(organization_id),
                        originated_from=window.originated_from,
                        window_expires_at=window.window_expires_at,
                        window_open=window.window_open,
                        created_at=event_at,
                    )
                )
            elif not is_echo:
                await uow.tickets.renew_window(
                    ticket.id, self._window_policy.renewed_window(event_at)
                )

            persisted = await uow.messages.create(
                MessageCreate(
                    wamid=wamid,
                    organization_id=organization_id,
                    lead_id=lead.id,
                    config_id=config.id,
                    conversation_id=conversation.id,
                    ticket_id=ticket.id,
                    direction=MessageDirection.OUTBOUND if is_echo else MessageDirection.INBOUND,
                    type=content.type,
                    body=content.body,
                    media_url=content.media_url,
                    status=ECHO_STATUS if is_echo else INBOUND_STATUS,
                    timestamp=event_at,
                    source=MessageSource.LIVE,
                    raw_payload=message,
                )
            )
            await uow.conversations.increment_message_count(conversation.id, event_at)
            await uow.tickets.increment_message_count(ticket.id)

            if not is_echo:
                attribution = extract_attribution(message)
                if attribution is not None:
                    await self._apply_attribution(uow, ticket.id, attribution, event_at)

            notifications.extend(self._notifications_for(persisted, conversation))
            await uow.commit()

        self._dispatcher.dispatch(notifications)
        self._log(
            "message_persisted",
            wamid=wamid,
            ticket_id=ticket.id,
            direction=persisted.direction.value,
            type=content.type,
        )
        return _Outcome.PROCESSED

    async def _apply_attribution(
        self,
        uow: UnitOfWork,
        ticket_id: str,
        attribution: Attribution,
        changed_at: datetime,
    ) -> None:
        """
        Apply last-touch attribution to the ticket's tracking row.

        A different ad id overwrites the stored one, appends a history row and resets
        enrichment; other fields merge without touching enrichment state.
        """
        tracking = await uow.trackings.get_by_ticket(ticket_id)
        if tracking is None:
            await uow.trackings.create(ticket_id, attribution)
            return

        fields: dict[str, Any] = attribution.non_ad_fields()
        new_ad_id = attribution.meta_ad_id
        if new_ad_id and new_ad_id != tracking.meta_ad_id:
            await uow.trackings.add_history(tracking.id, tracking.meta_ad_id, new_ad_id, changed_at)
            fields.update(
                meta_ad_id=new_ad_id,
                enrichment_status=EnrichmentStatus.PENDING,
                enrichment_error=None,
            )
            self._log(
                "attribution_ad_changed",
                ticket_id=ticket_id,
                old_ad_id=tracking.meta_ad_id,
                new_ad_id=new_ad_id,
            )
        if fields:
            await uow.trackings.update(tracking.id, fields)

    def _notifications_for(
        self, message: Message, conversation: Conversation
    ) -> list[RealtimeNotification]:
        message_data = {
            "id": message.id,
            "wamid": message.wamid,
            "conversation_id": conversation.id,
            "lead_id": message.lead_id,
            "ticket_id": message.ticket_id,
            "direction": message.direction.value,
            "type": message.type,
            "body": message.body,
            "media_url": message.media_url,
            "status": message.status,
            "timestamp": message.timestamp.isoformat(),
        }
        return [
            RealtimeNotification(
                channel=f"chat:conversation:{conversation.id}",
                payload={"type": "new_message", "data": message_data},
            ),
            RealtimeNotification(
                channel=f"chat:org:{message.organization_id}",
                payload={
                    "type": "conversation_updated",
                    "data": {
                        "id": conversation.id,
                        "lead_id": conversation.lead_id,
                        "last_message_at": message.timestamp.isoformat(),
                        "last_message": message.body,
                    },
                },
            ),
        ]
