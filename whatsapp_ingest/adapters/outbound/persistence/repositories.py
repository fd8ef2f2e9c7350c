"""SQLAlchemy repositories bound to a unit-of-work session."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whatsapp_ingest.application.dtos.lead import LeadCreate, LeadUpdate
from whatsapp_ingest.application.dtos.message import MessageCreate
from whatsapp_ingest.application.dtos.ticket import TicketCreate
from whatsapp_ingest.application.errors import DuplicateMessageError
from whatsapp_ingest.application.ports.connection_repository import (
    ConnectionRepository,
    OnboardingRepository,
)
from whatsapp_ingest.application.ports.conversation_repository import ConversationRepository
from whatsapp_ingest.application.ports.history_sync_repository import HistorySyncRepository
from whatsapp_ingest.application.ports.lead_repository import LeadRepository
from whatsapp_ingest.application.ports.message_repository import MessageRepository
from whatsapp_ingest.application.ports.organization_settings_repository import (
    OrganizationSettingsRepository,
)
from whatsapp_ingest.application.ports.ticket_repository import TicketRepository
from whatsapp_ingest.application.ports.ticket_tracking_repository import (
    TicketTrackingRepository,
)
from whatsapp_ingest.application.ports.whatsapp_config_repository import (
    WhatsAppConfigRepository,
)
from whatsapp_ingest.domain.entities.connection import (
    Connection,
    ConnectionStatus,
    Onboarding,
    OnboardingStatus,
)
from whatsapp_ingest.domain.entities.conversation import Conversation
from whatsapp_ingest.domain.entities.history_sync import (
    HISTORY_SYNC_COMPLETED,
    HISTORY_SYNC_PROCESSING,
    HistorySyncLog,
)
from whatsapp_ingest.domain.entities.lead import Lead, LeadSource
from whatsapp_ingest.domain.entities.message import Message, MessageDirection, MessageSource
from whatsapp_ingest.domain.entities.ticket import (
    EnrichmentStatus,
    Ticket,
    TicketOrigin,
    TicketStatus,
    TicketTracking,
)
from whatsapp_ingest.domain.entities.whatsapp_config import HistorySyncStatus, WhatsAppConfig
from whatsapp_ingest.domain.value_objects.attribution import Attribution

from .models import (
    ConversationModel,
    LeadModel,
    MessageModel,
    MetaAttributionHistoryModel,
    OrganizationSettingsModel,
    TicketModel,
    TicketStageModel,
    TicketTrackingModel,
    WhatsAppConfigModel,
    WhatsAppConnectionModel,
    WhatsAppHistorySyncModel,
    WhatsAppOnboardingModel,
)

DEFAULT_STAGE_NAME = "New"


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; everything stored is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class _SessionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session


class SqlAlchemyWhatsAppConfigRepository(_SessionRepository, WhatsAppConfigRepository):
    """SQLAlchemy implementation of the WhatsApp config repository."""

    def _to_entity(self, model: WhatsAppConfigModel) -> WhatsAppConfig:
        return WhatsAppConfig(
            id=model.id,
            organization_id=model.organization_id,
            phone_number_id=model.phone_number_id,
            waba_id=model.waba_id,
            last_webhook_at=_aware(model.last_webhook_at),
            history_sync_status=(
                HistorySyncStatus(model.history_sync_status) if model.history_sync_status else None
            ),
            history_sync_progress=model.history_sync_progress or 0,
            history_sync_phase=model.history_sync_phase,
            history_sync_chunk_order=model.history_sync_chunk_order,
            history_sync_started_at=_aware(model.history_sync_started_at),
            history_sync_completed_at=_aware(model.history_sync_completed_at),
        )

    async def get_by_phone_number_id(self, phone_number_id: str) -> Optional[WhatsAppConfig]:
        model = (
            self._session.query(WhatsAppConfigModel)
            .filter(WhatsAppConfigModel.phone_number_id == phone_number_id)
            .first()
        )
        return self._to_entity(model) if model else None

    async def touch_last_webhook(self, config_id: str, received_at: datetime) -> None:
        model = self._session.get(WhatsAppConfigModel, config_id)
        model.last_webhook_at = received_at
        self._session.flush()

    async def update_history_sync(
        self,
        config_id: str,
        status: HistorySyncStatus,
        progress: Optional[int] = None,
        phase: Optional[int] = None,
        chunk_order: Optional[int] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> None:
        model = self._session.get(WhatsAppConfigModel, config_id)
        model.history_sync_status = status.value
        if progress is not None:
            model.history_sync_progress = progress
        if phase is not None:
            model.history_sync_phase = phase
        if chunk_order is not None:
            model.history_sync_chunk_order = chunk_order
        if started_at is not None and model.history_sync_started_at is None:
            model.history_sync_started_at = started_at
        if completed_at is not None:
            model.history_sync_completed_at = completed_at
        self._session.flush()


class SqlAlchemyLeadRepository(_SessionRepository, LeadRepository):
    """
    SQLAlchemy implementation of the lead repository.

    ``source`` is only ever written by ``create``; ``update`` has no access to it.
    """

    def _to_entity(self, model: LeadModel) -> Lead:
        return Lead(
            id=model.id,
            organization_id=model.organization_id,
            wa_id=model.wa_id,
            phone=model.phone,
            source=LeadSource(model.source),
            push_name=model.push_name,
            is_active=model.is_active,
            deleted_at=_aware(model.deleted_at),
            last_synced_at=_aware(model.last_synced_at),
            last_message_at=_aware(model.last_message_at),
            created_at=_aware(model.created_at),
        )

    def _get_by_wa_id(self, organization_id: str, wa_id: str) -> Optional[LeadModel]:
        return (
            self._session.query(LeadModel)
            .filter(LeadModel.organization_id == organization_id, LeadModel.wa_id == wa_id)
            .first()
        )

    async def find_by_identity(
        self, organization_id: str, wa_id: str, phone: Optional[str] = None
    ) -> Optional[Lead]:
        model = self._get_by_wa_id(organization_id, wa_id)
        if model is None and phone:
            model = (
                self._session.query(LeadModel)
                .filter(
                    LeadModel.organization_id == organization_id,
                    or_(LeadModel.phone == phone, LeadModel.wa_id == phone),
                )
                .order_by(LeadModel.created_at)
                .first()
            )
        return self._to_entity(model) if model else None

    def _new_model(self, data: LeadCreate) -> LeadModel:
        return LeadModel(
            organization_id=data.organization_id,
            wa_id=data.wa_id,
            phone=data.phone,
            source=data.source.value,
            push_name=data.push_name,
            is_active=True,
            last_synced_at=data.last_synced_at,
            last_message_at=data.last_message_at,
        )

    async def create(self, data: LeadCreate) -> Lead:
        model = self._new_model(data)
        self._session.add(model)
        self._session.flush()
        return self._to_entity(model)

    async def get_or_create(self, data: LeadCreate) -> tuple[Lead, bool]:
        model = self._new_model(data)
        try:
            with self._session.begin_nested():
                self._session.add(model)
                self._session.flush()
        except IntegrityError:
            # a concurrent writer committed the same (organization_id, wa_id) first
            existing = self._get_by_wa_id(data.organization_id, data.wa_id)
            if existing is None:
                raise
            return self._to_entity(existing), False
        return self._to_entity(model), True

    def _apply_update(self, model: LeadModel, data: LeadUpdate) -> None:
        if data.wa_id is not None:
            model.wa_id = data.wa_id
        if data.push_name is not None:
            model.push_name = data.push_name
        if data.last_synced_at is not None:
            model.last_synced_at = data.last_synced_at
        if data.last_message_at is not None:
            model.last_message_at = data.last_message_at
        if data.reactivate:
            model.is_active = True
            model.deleted_at = None

    async def update(self, lead_id: str, data: LeadUpdate) -> Lead:
        model = self._session.get(LeadModel, lead_id)
        self._apply_update(model, data)
        self._session.flush()
        return self._to_entity(model)

    async def upsert(self, create: LeadCreate, update: LeadUpdate) -> tuple[Lead, bool]:
        model = self._get_by_wa_id(create.organization_id, create.wa_id)
        if model is None:
            lead, created = await self.get_or_create(create)
            if created:
                return lead, True
            model = self._session.get(LeadModel, lead.id)
        self._apply_update(model, update)
        self._session.flush()
        return self._to_entity(model), False

    async def deactivate(self, lead_id: str, deleted_at: datetime) -> None:
        model = self._session.get(LeadModel, lead_id)
        model.is_active = False
        model.deleted_at = deleted_at
        self._session.flush()


class SqlAlchemyConversationRepository(_SessionRepository, ConversationRepository):
    """SQLAlchemy implementation of the conversation repository."""

    def _to_entity(self, model: ConversationModel) -> Conversation:
        return Conversation(
            id=model.id,
            organization_id=model.organization_id,
            lead_id=model.lead_id,
            config_id=model.config_id,
            message_count=model.message_count or 0,
            provider_conversation_id=model.provider_conversation_id,
            last_message_at=_aware(model.last_message_at),
            created_at=_aware(model.created_at),
        )

    async def upsert(
        self,
        organization_id: str,
        lead_id: str,
        config_id: str,
        provider_conversation_id: Optional[str] = None,
    ) -> Conversation:
        model = self._get_model(lead_id, config_id)
        if model is None:
            model = ConversationModel(
                organization_id=organization_id,
                lead_id=lead_id,
                config_id=config_id,
                provider_conversation_id=provider_conversation_id,
                message_count=0,
            )
            try:
                with self._session.begin_nested():
                    self._session.add(model)
                    self._session.flush()
                return self._to_entity(model)
            except IntegrityError:
                # created concurrently for the same (lead_id, config_id)
                model = self._get_model(lead_id, config_id)
                if model is None:
                    raise
        if provider_conversation_id:
            model.provider_conversation_id = provider_conversation_id
        self._session.flush()
        return self._to_entity(model)

    def _get_model(self, lead_id: str, config_id: str) -> Optional[ConversationModel]:
        return (
            self._session.query(ConversationModel)
            .filter(ConversationModel.lead_id == lead_id, ConversationModel.config_id == config_id)
            .first()
        )

    async def increment_message_count(self, conversation_id: str, last_message_at: datetime) -> None:
        model = self._session.get(ConversationModel, conversation_id)
        model.message_count = (model.message_count or 0) + 1
        model.last_message_at = last_message_at
        self._session.flush()


class SqlAlchemyTicketRepository(_SessionRepository, TicketRepository):
    """SQLAlchemy implementation of the ticket repository."""

    def _to_entity(self, model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            organization_id=model.organization_id,
            conversation_id=model.conversation_id,
            lead_id=model.lead_id,
            stage_id=model.stage_id,
            status=TicketStatus(model.status),
            source=model.source,
            originated_from=TicketOrigin(model.originated_from),
            created_at=_aware(model.created_at),
            window_expires_at=_aware(model.window_expires_at),
            window_open=model.window_open,
            message_count=model.message_count or 0,
            closed_reason=model.closed_reason,
            closed_at=_aware(model.closed_at),
        )

    async def find_open(self, conversation_id: str) -> Optional[Ticket]:
        model = (
            self._session.query(TicketModel)
            .filter(
                TicketModel.conversation_id == conversation_id,
                TicketModel.status == TicketStatus.OPEN.value,
            )
            .order_by(TicketModel.created_at.desc())
            .first()
        )
        return self._to_entity(model) if model else None

    async def create(self, data: TicketCreate) -> Ticket:
        model = TicketModel(
            organization_id=data.organization_id,
            conversation_id=data.conversation_id,
            lead_id=data.lead_id,
            stage_id=data.stage_id,
            status=TicketStatus.OPEN.value,
            source=data.source,
            originated_from=data.originated_from.value,
            window_expires_at=data.window_expires_at,
            window_open=data.window_open,
            message_count=0,
            created_at=data.created_at,
        )
        self._session.add(model)
        self._session.flush()
        return self._to_entity(model)

    async def close(self, ticket_id: str, reason: str, closed_at: datetime) -> None:
        model = self._session.get(TicketModel, ticket_id)
        model.status = TicketStatus.CLOSED.value
        model.closed_reason = reason
        model.closed_at = closed_at
        model.window_open = False
        self._session.flush()

    async def renew_window(self, ticket_id: str, window_expires_at: datetime) -> None:
        model = self._session.get(TicketModel, ticket_id)
        model.window_expires_at = window_expires_at
        model.window_open = True
        self._session.flush()

    async def increment_message_count(self, ticket_id: str) -> None:
        model = self._session.get(TicketModel, ticket_id)
        model.message_count = (model.message_count or 0) + 1
        self._session.flush()


class SqlAlchemyTicketTrackingRepository(_SessionRepository, TicketTrackingRepository):
    """SQLAlchemy implementation of the ticket tracking repository."""

    def _to_entity(self, model: TicketTrackingModel) -> TicketTracking:
        return TicketTracking(
            id=model.id,
            ticket_id=model.ticket_id,
            utm_source=model.utm_source,
            utm_medium=model.utm_medium,
            utm_campaign=model.utm_campaign,
            utm_content=model.utm_content,
            utm_term=model.utm_term,
            fbclid=model.fbclid,
            gclid=model.gclid,
            ctwaclid=model.ctwaclid,
            meta_ad_id=model.meta_ad_id,
            source_type=model.source_type,
            placement=model.placement,
            source_url=model.source_url,
            headline=model.headline,
            enrichment_status=EnrichmentStatus(model.enrichment_status),
            enrichment_error=model.enrichment_error,
            updated_at=_aware(model.updated_at),
        )

    async def get_by_ticket(self, ticket_id: str) -> Optional[TicketTracking]:
        model = (
            self._session.query(TicketTrackingModel)
            .filter(TicketTrackingModel.ticket_id == ticket_id)
            .first()
        )
        return self._to_entity(model) if model else None

    async def create(self, ticket_id: str, attribution: Attribution) -> TicketTracking:
        model = TicketTrackingModel(
            ticket_id=ticket_id,
            utm_source=attribution.utm_source,
            utm_medium=attribution.utm_medium,
            utm_campaign=attribution.utm_campaign,
            utm_content=attribution.utm_content,
            utm_term=attribution.utm_term,
            fbclid=attribution.fbclid,
            gclid=attribution.gclid,
            ctwaclid=attribution.ctwaclid,
            meta_ad_id=attribution.meta_ad_id,
            source_type=attribution.source_type,
            placement=attribution.placement,
            source_url=attribution.source_url,
            headline=attribution.headline,
            enrichment_status=EnrichmentStatus.PENDING.value,
        )
        self._session.add(model)
        self._session.flush()
        return self._to_entity(model)

    async def update(self, tracking_id: str, fields: dict[str, Any]) -> None:
        model = self._session.get(TicketTrackingModel, tracking_id)
        for name, value in fields.items():
            if not hasattr(TicketTrackingModel, name):
                raise ValueError(f"Unknown tracking column: {name}")
            setattr(model, name, _column_value(value))
        self._session.flush()

    async def add_history(
        self,
        tracking_id: str,
        old_ad_id: Optional[str],
        new_ad_id: Optional[str],
        changed_at: datetime,
    ) -> None:
        self._session.add(
            MetaAttributionHistoryModel(
                ticket_tracking_id=tracking_id,
                old_ad_id=old_ad_id,
                new_ad_id=new_ad_id,
                changed_at=changed_at,
            )
        )
        self._session.flush()


class SqlAlchemyMessageRepository(_SessionRepository, MessageRepository):
    """SQLAlchemy implementation of the message repository."""

    def _to_entity(self, model: MessageModel) -> Message:
        return Message(
            id=model.id,
            wamid=model.wamid,
            organization_id=model.organization_id,
            lead_id=model.lead_id,
            config_id=model.config_id,
            conversation_id=model.conversation_id,
            ticket_id=model.ticket_id,
            direction=MessageDirection(model.direction),
            type=model.type,
            body=model.body,
            status=model.status,
            timestamp=_aware(model.timestamp),
            source=MessageSource(model.source),
            media_url=model.media_url,
            raw_payload=model.raw_payload or {},
        )

    def _to_model(self, data: MessageCreate) -> MessageModel:
        return MessageModel(
            wamid=data.wamid,
            organization_id=data.organization_id,
            lead_id=data.lead_id,
            config_id=data.config_id,
            conversation_id=data.conversation_id,
            ticket_id=data.ticket_id,
            direction=data.direction.value,
            type=data.type,
            body=data.body,
            media_url=data.media_url,
            status=data.status,
            timestamp=data.timestamp,
            source=data.source.value,
            raw_payload=data.raw_payload,
        )

    def _get_by_wamid(self, wamid: str) -> Optional[MessageModel]:
        return self._session.query(MessageModel).filter(MessageModel.wamid == wamid).first()

    async def exists(self, wamid: str) -> bool:
        return self._get_by_wamid(wamid) is not None

    async def create(self, data: MessageCreate) -> Message:
        model = self._to_model(data)
        self._session.add(model)
        try:
            self._session.flush()
        except IntegrityError as e:
            # wamid is the only unique column a fresh message row can collide on
            raise DuplicateMessageError(data.wamid) from e
        return self._to_entity(model)

    async def upsert_history(self, data: MessageCreate) -> tuple[Message, bool]:
        model = self._get_by_wamid(data.wamid)
        if model is not None:
            model.status = data.status
            self._session.flush()
            return self._to_entity(model), False
        model = self._to_model(data)
        self._session.add(model)
        self._session.flush()
        return self._to_entity(model), True


class SqlAlchemyConnectionRepository(_SessionRepository, ConnectionRepository):
    """SQLAlchemy implementation of the connection repository."""

    def _to_entity(self, model: WhatsAppConnectionModel) -> Connection:
        return Connection(
            id=model.id,
            organization_id=model.organization_id,
            waba_id=model.waba_id,
            status=ConnectionStatus(model.status),
            owner_business_id=model.owner_business_id,
            phone_number_id=model.phone_number_id,
            connected_at=_aware(model.connected_at),
            disconnected_at=_aware(model.disconnected_at),
        )

    def _get_model(self, organization_id: str, waba_id: str) -> Optional[WhatsAppConnectionModel]:
        return (
            self._session.query(WhatsAppConnectionModel)
            .filter(
                WhatsAppConnectionModel.organization_id == organization_id,
                WhatsAppConnectionModel.waba_id == waba_id,
            )
            .first()
        )

    async def get(self, organization_id: str, waba_id: str) -> Optional[Connection]:
        model = self._get_model(organization_id, waba_id)
        return self._to_entity(model) if model else None

    async def find_by_owner_business_id(self, owner_business_id: str) -> list[Connection]:
        models = (
            self._session.query(WhatsAppConnectionModel)
            .filter(WhatsAppConnectionModel.owner_business_id == owner_business_id)
            .order_by(WhatsAppConnectionModel.created_at)
            .all()
        )
        return [self._to_entity(model) for model in models]

    async def upsert_active(
        self,
        organization_id: str,
        waba_id: str,
        owner_business_id: Optional[str],
        phone_number_id: Optional[str],
        connected_at: datetime,
    ) -> Connection:
        model = self._get_model(organization_id, waba_id)
        if model is None:
            model = WhatsAppConnectionModel(
                organization_id=organization_id,
                waba_id=waba_id,
                owner_business_id=owner_business_id,
                phone_number_id=phone_number_id,
                status=ConnectionStatus.ACTIVE.value,
                connected_at=connected_at,
            )
            self._session.add(model)
        else:
            model.status = ConnectionStatus.ACTIVE.value
            model.connected_at = connected_at
            model.disconnected_at = None
            if owner_business_id:
                model.owner_business_id = owner_business_id
            if phone_number_id:
                model.phone_number_id = phone_number_id
        self._session.flush()
        return self._to_entity(model)

    async def activate(
        self,
        connection_id: str,
        connected_at: Optional[datetime] = None,
        waba_id: Optional[str] = None,
    ) -> Connection:
        model = self._session.get(WhatsAppConnectionModel, connection_id)
        model.status = ConnectionStatus.ACTIVE.value
        model.disconnected_at = None
        if connected_at is not None:
            model.connected_at = connected_at
        if waba_id:
            model.waba_id = waba_id
        self._session.flush()
        return self._to_entity(model)

    async def deactivate(self, connection_id: str, disconnected_at: datetime) -> Connection:
        model = self._session.get(WhatsAppConnectionModel, connection_id)
        model.status = ConnectionStatus.INACTIVE.value
        model.disconnected_at = disconnected_at
        self._session.flush()
        return self._to_entity(model)


class SqlAlchemyOnboardingRepository(_SessionRepository, OnboardingRepository):
    """SQLAlchemy implementation of the onboarding repository."""

    def _to_entity(self, model: WhatsAppOnboardingModel) -> Onboarding:
        return Onboarding(
            id=model.id,
            tracking_code=model.tracking_code,
            organization_id=model.organization_id,
            expires_at=_aware(model.expires_at),
            status=OnboardingStatus(model.status),
            waba_id=model.waba_id,
            owner_business_id=model.owner_business_id,
            phone_number_id=model.phone_number_id,
            completed_at=_aware(model.completed_at),
        )

    async def get_by_tracking_code(self, tracking_code: str) -> Optional[Onboarding]:
        model = (
            self._session.query(WhatsAppOnboardingModel)
            .filter(WhatsAppOnboardingModel.tracking_code == tracking_code)
            .first()
        )
        return self._to_entity(model) if model else None

    async def mark_expired(self, onboarding_id: str) -> None:
        model = self._session.get(WhatsAppOnboardingModel, onboarding_id)
        model.status = OnboardingStatus.EXPIRED.value
        self._session.flush()

    async def mark_completed(
        self,
        onboarding_id: str,
        waba_id: str,
        owner_business_id: Optional[str],
        phone_number_id: Optional[str],
        completed_at: datetime,
    ) -> Onboarding:
        model = self._session.get(WhatsAppOnboardingModel, onboarding_id)
        model.status = OnboardingStatus.COMPLETED.value
        model.waba_id = waba_id
        model.owner_business_id = owner_business_id
        model.phone_number_id = phone_number_id
        model.completed_at = completed_at
        self._session.flush()
        return self._to_entity(model)


class SqlAlchemyHistorySyncRepository(_SessionRepository, HistorySyncRepository):
    """SQLAlchemy implementation of the history sync log repository."""

    def _to_entity(self, model: WhatsAppHistorySyncModel) -> HistorySyncLog:
        return HistorySyncLog(
            id=model.id,
            connection_id=model.connection_id,
            phase=model.phase,
            chunk_order=model.chunk_order,
            progress=model.progress,
            status=model.status,
            messages_imported=model.messages_imported or 0,
            threads_processed=model.threads_processed or 0,
            last_payload_at=_aware(model.last_payload_at),
        )

    async def start_chunk(
        self,
        connection_id: str,
        phase: Optional[int],
        chunk_order: Optional[int],
        progress: int,
        received_at: datetime,
    ) -> HistorySyncLog:
        # redelivered chunks reopen their existing row
        model = (
            self._session.query(WhatsAppHistorySyncModel)
            .filter(
                WhatsAppHistorySyncModel.connection_id == connection_id,
                WhatsAppHistorySyncModel.phase == phase,
                WhatsAppHistorySyncModel.chunk_order == chunk_order,
            )
            .first()
        )
        if model is None:
            model = WhatsAppHistorySyncModel(
                connection_id=connection_id,
                phase=phase,
                chunk_order=chunk_order,
            )
            self._session.add(model)
        model.progress = progress
        model.status = HISTORY_SYNC_PROCESSING
        model.last_payload_at = received_at
        self._session.flush()
        return self._to_entity(model)

    async def complete_chunk(self, log_id: str, threads_processed: int, messages_imported: int) -> None:
        model = self._session.get(WhatsAppHistorySyncModel, log_id)
        model.status = HISTORY_SYNC_COMPLETED
        model.threads_processed = threads_processed
        model.messages_imported = messages_imported
        model.last_payload_at = datetime.now(timezone.utc)
        self._session.flush()


class SqlAlchemyOrganizationSettingsRepository(_SessionRepository, OrganizationSettingsRepository):
    """SQLAlchemy implementation of organization ticket settings."""

    async def get_ticket_expiration_days(self, organization_id: str) -> Optional[int]:
        model = self._session.get(OrganizationSettingsModel, organization_id)
        return model.ticket_expiration_days if model else None

    async def get_default_stage_id(self, organization_id: str) -> str:
        stage = (
            self._session.query(TicketStageModel)
            .filter(TicketStageModel.organization_id == organization_id)
            .order_by(TicketStageModel.is_default.desc(), TicketStageModel.order)
            .first()
        )
        if stage is None:
            stage = TicketStageModel(
                organization_id=organization_id,
                name=DEFAULT_STAGE_NAME,
                order=0,
                is_default=True,
            )
            self._session.add(stage)
            self._session.flush()
        return stage.id
