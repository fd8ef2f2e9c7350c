"""Create webhook ingestion tables

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated_at: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if with_updated_at:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    op.create_table(
        "organization_settings",
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("ticket_expiration_days", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("organization_id"),
    )

    op.create_table(
        "ticket_stages",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        *_timestamps(with_updated_at=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_ticket_stages_organization_id"), "ticket_stages", ["organization_id"])

    op.create_table(
        "whatsapp_configs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("phone_number_id", sa.String(), nullable=False),
        sa.Column("waba_id", sa.String(), nullable=True),
        sa.Column("last_webhook_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("history_sync_status", sa.String(), nullable=True),
        sa.Column("history_sync_progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("history_sync_phase", sa.Integer(), nullable=True),
        sa.Column("history_sync_chunk_order", sa.Integer(), nullable=True),
        sa.Column("history_sync_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("history_sync_completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(with_updated_at=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("phone_number_id"),
    )
    op.create_index(
        op.f("ix_whatsapp_configs_organization_id"), "whatsapp_configs", ["organization_id"]
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("wa_id", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("push_name", sa.String(), nullable=True),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "wa_id", name="uq_leads_org_wa_id"),
    )
    op.create_index(op.f("ix_leads_organization_id"), "leads", ["organization_id"])
    op.create_index(op.f("ix_leads_phone"), "leads", ["phone"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("lead_id", sa.String(), nullable=False),
        sa.Column("config_id", sa.String(), nullable=False),
        sa.Column("provider_conversation_id", sa.String(), nullable=True),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["config_id"], ["whatsapp_configs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("lead_id", "config_id", name="uq_conversations_lead_config"),
    )
    op.create_index(op.f("ix_conversations_organization_id"), "conversations", ["organization_id"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("conversation_id", sa.String(), nullable=False),
        sa.Column("lead_id", sa.String(), nullable=False),
        sa.Column("stage_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("originated_from", sa.String(), nullable=False),
        sa.Column("window_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("window_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("closed_reason", sa.String(), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"]),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["stage_id"], ["ticket_stages.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tickets_organization_id"), "tickets", ["organization_id"])
    op.create_index(op.f("ix_tickets_conversation_id"), "tickets", ["conversation_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("wamid", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("lead_id", sa.String(), nullable=False),
        sa.Column("config_id", sa.String(), nullable=False),
        sa.Column("conversation_id", sa.String(), nullable=True),
        sa.Column("ticket_id", sa.String(), nullable=True),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("media_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("raw_payload", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["config_id"], ["whatsapp_configs.id"]),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"]),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("wamid"),
    )
    op.create_index(op.f("ix_messages_organization_id"), "messages", ["organization_id"])
    op.create_index(op.f("ix_messages_conversation_id"), "messages", ["conversation_id"])

    op.create_table(
        "ticket_trackings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ticket_id", sa.String(), nullable=False),
        sa.Column("utm_source", sa.String(), nullable=True),
        sa.Column("utm_medium", sa.String(), nullable=True),
        sa.Column("utm_campaign", sa.String(), nullable=True),
        sa.Column("utm_content", sa.String(), nullable=True),
        sa.Column("utm_term", sa.String(), nullable=True),
        sa.Column("fbclid", sa.String(), nullable=True),
        sa.Column("gclid", sa.String(), nullable=True),
        sa.Column("ctwaclid", sa.String(), nullable=True),
        sa.Column("meta_ad_id", sa.String(), nullable=True),
        sa.Column("source_type", sa.String(), nullable=True),
        sa.Column("placement", sa.String(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("headline", sa.String(), nullable=True),
        sa.Column("enrichment_status", sa.String(), nullable=False),
        sa.Column("enrichment_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ticket_id"),
    )

    op.create_table(
        "meta_attribution_history",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ticket_tracking_id", sa.String(), nullable=False),
        sa.Column("old_ad_id", sa.String(), nullable=True),
        sa.Column("new_ad_id", sa.String(), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ticket_tracking_id"], ["ticket_trackings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_meta_attribution_history_ticket_tracking_id"),
        "meta_attribution_history",
        ["ticket_tracking_id"],
    )

    op.create_table(
        "whatsapp_connections",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("waba_id", sa.String(), nullable=False),
        sa.Column("owner_business_id", sa.String(), nullable=True),
        sa.Column("phone_number_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("connected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("disconnected_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "organization_id", "waba_id", name="uq_whatsapp_connections_org_waba"
        ),
    )
    op.create_index(
        op.f("ix_whatsapp_connections_organization_id"),
        "whatsapp_connections",
        ["organization_id"],
    )
    op.create_index(
        op.f("ix_whatsapp_connections_owner_business_id"),
        "whatsapp_connections",
        ["owner_business_id"],
    )

    op.create_table(
        "whatsapp_onboardings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tracking_code", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("waba_id", sa.String(), nullable=True),
        sa.Column("owner_business_id", sa.String(), nullable=True),
        sa.Column("phone_number_id", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(with_updated_at=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tracking_code"),
    )
    op.create_index(
        op.f("ix_whatsapp_onboardings_organization_id"),
        "whatsapp_onboardings",
        ["organization_id"],
    )

    op.create_table(
        "whatsapp_history_syncs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("connection_id", sa.String(), nullable=False),
        sa.Column("phase", sa.Integer(), nullable=True),
        sa.Column("chunk_order", sa.Integer(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("threads_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("messages_imported", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_payload_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(with_updated_at=False),
        sa.ForeignKeyConstraint(["connection_id"], ["whatsapp_configs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "connection_id", "phase", "chunk_order", name="uq_whatsapp_history_syncs_chunk"
        ),
    )

    op.create_table(
        "whatsapp_audit_logs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tracking_code", sa.String(), nullable=True),
        sa.Column("connection_id", sa.String(), nullable=True),
        sa.Column("metadata", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        *_timestamps(with_updated_at=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_whatsapp_audit_logs_organization_id"), "whatsapp_audit_logs", ["organization_id"]
    )

    op.create_table(
        "whatsapp_webhook_logs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=True),
        sa.Column("phone_number_id", sa.String(), nullable=True),
        sa.Column("signature_valid", sa.Boolean(), nullable=True),
        sa.Column("payload", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_whatsapp_webhook_logs_phone_number_id"),
        "whatsapp_webhook_logs",
        ["phone_number_id"],
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_whatsapp_webhook_logs_phone_number_id"), table_name="whatsapp_webhook_logs")
    op.drop_table("whatsapp_webhook_logs")
    op.drop_index(op.f("ix_whatsapp_audit_logs_organization_id"), table_name="whatsapp_audit_logs")
    op.drop_table("whatsapp_audit_logs")
    op.drop_table("whatsapp_history_syncs")
    op.drop_index(op.f("ix_whatsapp_onboardings_organization_id"), table_name="whatsapp_onboardings")
    op.drop_table("whatsapp_onboardings")
    op.drop_index(
        op.f("ix_whatsapp_connections_owner_business_id"), table_name="whatsapp_connections"
    )
    op.drop_index(op.f("ix_whatsapp_connections_organization_id"), table_name="whatsapp_connections")
    op.drop_table("whatsapp_connections")
    op.drop_index(
        op.f("ix_meta_attribution_history_ticket_tracking_id"),
        table_name="meta_attribution_history",
    )
    op.drop_table("meta_attribution_history")
    op.drop_table("ticket_trackings")
    op.drop_index(op.f("ix_messages_conversation_id"), table_name="messages")
    op.drop_index(op.f("ix_messages_organization_id"), table_name="messages")
    op.drop_table("messages")
    op.drop_index(op.f("ix_tickets_conversation_id"), table_name="tickets")
    op.drop_index(op.f("ix_tickets_organization_id"), table_name="tickets")
    op.drop_table("tickets")
    op.drop_index(op.f("ix_conversations_organization_id"), table_name="conversations")
    op.drop_table("conversations")
    op.drop_index(op.f("ix_leads_phone"), table_name="leads")
    op.drop_index(op.f("ix_leads_organization_id"), table_name="leads")
    op.drop_table("leads")
    op.drop_index(op.f("ix_whatsapp_configs_organization_id"), table_name="whatsapp_configs")
    op.drop_table("whatsapp_configs")
    op.drop_index(op.f("ix_ticket_stages_organization_id"), table_name="ticket_stages")
    op.drop_table("ticket_stages")
    op.drop_table("organization_settings")
