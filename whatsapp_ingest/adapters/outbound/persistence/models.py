"""SQLAlchemy ORM models for webhook ingestion."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrganizationSettingsModel(Base):
    """SQLAlchemy model for organization_settings table."""

    __tablename__ = "organization_settings"

    organization_id = Column(String, primary_key=True)
    ticket_expiration_days = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class TicketStageModel(Base):
    """SQLAlchemy model for ticket_stages table."""

    __tablename__ = "ticket_stages"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class WhatsAppConfigModel(Base):
    """SQLAlchemy model for whatsapp_configs table."""

    __tablename__ = "whatsapp_configs"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    phone_number_id = Column(String, nullable=False, unique=True)
    waba_id = Column(String, nullable=True)
    last_webhook_at = Column(DateTime(timezone=True), nullable=True)
    history_sync_status = Column(String, nullable=True)  # pending_consent, pending_history, ...
    history_sync_progress = Column(Integer, nullable=False, default=0)
    history_sync_phase = Column(Integer, nullable=True)
    history_sync_chunk_order = Column(Integer, nullable=True)
    history_sync_started_at = Column(DateTime(timezone=True), nullable=True)
    history_sync_completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class LeadModel(Base):
    """SQLAlchemy model for leads table."""

    __tablename__ = "leads"
    __table_args__ = (UniqueConstraint("organization_id", "wa_id", name="uq_leads_org_wa_id"),)

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    wa_id = Column(String, nullable=False)
    phone = Column(String, nullable=False, index=True)
    push_name = Column(String, nullable=True)
    source = Column(String, nullable=False)  # live_message, outbound_message, history_sync, state_sync
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class ConversationModel(Base):
    """SQLAlchemy model for conversations table."""

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("lead_id", "config_id", name="uq_conversations_lead_config"),
    )

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False)
    config_id = Column(String, ForeignKey("whatsapp_configs.id"), nullable=False)
    provider_conversation_id = Column(String, nullable=True)
    message_count = Column(Integer, nullable=False, default=0)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class TicketModel(Base):
    """SQLAlchemy model for tickets table."""

    __tablename__ = "tickets"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    conversation_id = Column(String, ForeignKey("conversations.id"), nullable=False, index=True)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False)
    stage_id = Column(String, ForeignKey("ticket_stages.id"), nullable=True)
    status = Column(String, nullable=False)  # open, closed
    source = Column(String, nullable=False)
    originated_from = Column(String, nullable=False)  # new_contact, history_lead
    window_expires_at = Column(DateTime(timezone=True), nullable=True)
    window_open = Column(Boolean, nullable=False, default=False)
    message_count = Column(Integer, nullable=False, default=0)
    closed_reason = Column(String, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class MessageModel(Base):
    """SQLAlchemy model for messages table."""

    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=_uuid)
    wamid = Column(String, nullable=False, unique=True)
    organization_id = Column(String, nullable=False, index=True)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False)
    config_id = Column(String, ForeignKey("whatsapp_configs.id"), nullable=False)
    conversation_id = Column(String, ForeignKey("conversations.id"), nullable=True, index=True)
    ticket_id = Column(String, ForeignKey("tickets.id"), nullable=True)  # null for history
    direction = Column(String, nullable=False)
    type = Column(String, nullable=False)
    body = Column(Text, nullable=True)
    media_url = Column(String, nullable=True)
    status = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    source = Column(String, nullable=False)  # live, history
    raw_payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class TicketTrackingModel(Base):
    """SQLAlchemy model for ticket_trackings table."""

    __tablename__ = "ticket_trackings"

    id = Column(String, primary_key=True, default=_uuid)
    ticket_id = Column(String, ForeignKey("tickets.id"), nullable=False, unique=True)
    utm_source = Column(String, nullable=True)
    utm_medium = Column(String, nullable=True)
    utm_campaign = Column(String, nullable=True)
    utm_content = Column(String, nullable=True)
    utm_term = Column(String, nullable=True)
    fbclid = Column(String, nullable=True)
    gclid = Column(String, nullable=True)
    ctwaclid = Column(String, nullable=True)
    meta_ad_id = Column(String, nullable=True)
    source_type = Column(String, nullable=True)
    placement = Column(String, nullable=True)
    source_url = Column(Text, nullable=True)
    headline = Column(String, nullable=True)
    enrichment_status = Column(String, nullable=False)  # PENDING, COMPLETED, FAILED
    enrichment_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class MetaAttributionHistoryModel(Base):
    """SQLAlchemy model for meta_attribution_history table."""

    __tablename__ = "meta_attribution_history"

    id = Column(String, primary_key=True, default=_uuid)
    ticket_tracking_id = Column(
        String, ForeignKey("ticket_trackings.id"), nullable=False, index=True
    )
    old_ad_id = Column(String, nullable=True)
    new_ad_id = Column(String, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False)


class WhatsAppConnectionModel(Base):
    """SQLAlchemy model for whatsapp_connections table."""

    __tablename__ = "whatsapp_connections"
    __table_args__ = (
        UniqueConstraint("organization_id", "waba_id", name="uq_whatsapp_connections_org_waba"),
    )

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    waba_id = Column(String, nullable=False)
    owner_business_id = Column(String, nullable=True, index=True)
    phone_number_id = Column(String, nullable=True)
    status = Column(String, nullable=False)  # active, inactive
    connected_at = Column(DateTime(timezone=True), nullable=True)
    disconnected_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class WhatsAppOnboardingModel(Base):
    """SQLAlchemy model for whatsapp_onboardings table."""

    __tablename__ = "whatsapp_onboardings"

    id = Column(String, primary_key=True, default=_uuid)
    tracking_code = Column(String, nullable=False, unique=True)
    organization_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)  # pending, completed, expired
    expires_at = Column(DateTime(timezone=True), nullable=False)
    waba_id = Column(String, nullable=True)
    owner_business_id = Column(String, nullable=True)
    phone_number_id = Column(String, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class WhatsAppHistorySyncModel(Base):
    """SQLAlchemy model for whatsapp_history_syncs table."""

    __tablename__ = "whatsapp_history_syncs"
    __table_args__ = (
        UniqueConstraint(
            "connection_id", "phase", "chunk_order", name="uq_whatsapp_history_syncs_chunk"
        ),
    )

    id = Column(String, primary_key=True, default=_uuid)
    connection_id = Column(String, ForeignKey("whatsapp_configs.id"), nullable=False)
    phase = Column(Integer, nullable=True)
    chunk_order = Column(Integer, nullable=True)
    progress = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False)  # processing, completed
    threads_processed = Column(Integer, nullable=False, default=0)
    messages_imported = Column(Integer, nullable=False, default=0)
    last_payload_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class WhatsAppAuditLogModel(Base):
    """SQLAlchemy model for whatsapp_audit_logs table."""

    __tablename__ = "whatsapp_audit_logs"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    tracking_code = Column(String, nullable=True)
    connection_id = Column(String, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class WhatsAppWebhookLogModel(Base):
    """SQLAlchemy model for whatsapp_webhook_logs table."""

    __tablename__ = "whatsapp_webhook_logs"

    id = Column(String, primary_key=True, default=_uuid)
    event_type = Column(String, nullable=True)
    phone_number_id = Column(String, nullable=True, index=True)
    signature_valid = Column(Boolean, nullable=True)
    payload = Column(JSON, nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False, default=_now)
