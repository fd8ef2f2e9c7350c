"""Unit tests for HandleMessageUseCase."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from tests.factories import (
    CONTACT_WA_ID,
    ORGANIZATION_ID,
    at,
    envelope,
    messages_payload,
    text_message,
    ts,
)
from whatsapp_ingest.adapters.outbound.persistence.models import (
    ConversationModel,
    LeadModel,
    MessageModel,
    MetaAttributionHistoryModel,
    OrganizationSettingsModel,
    TicketModel,
    TicketTrackingModel,
    WhatsAppConfigModel,
)
from whatsapp_ingest.adapters.outbound.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
)
from whatsapp_ingest.application.errors import ConfigNotFoundError, InvalidPayloadError
from whatsapp_ingest.application.use_cases.handle_message_use_case import HandleMessageUseCase

AD_REFERRAL = {
    "source_url": "https://fb.me/ad?utm_source=facebook&utm_campaign=spring",
    "source_type": "ad",
    "source_id": "AD-1",
    "ctwa_clid": "CLID-1",
}


def _utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


@pytest.fixture
def use_case(uow_factory, dispatcher):
    """Create use case over the SQLite unit of work."""
    return HandleMessageUseCase(uow_factory, dispatcher)


@pytest.mark.asyncio
async def test_new_contact_creates_lead_conversation_ticket_and_message(
    use_case, config_id, session_factory, dispatcher, publisher
):
    """Test the first message of an unknown contact builds the whole graph."""
    result = await use_case.execute(messages_payload([text_message("wamid.1")]))
    await dispatcher.drain()

    assert result.processed == 1
    assert result.failed == 0

    with session_factory() as session:
        lead = session.query(LeadModel).one()
        assert lead.source == "live_message"
        assert lead.wa_id == CONTACT_WA_ID
        assert lead.phone == f"+{CONTACT_WA_ID}"
        assert lead.push_name == "Ana"

        conversation = session.query(ConversationModel).one()
        assert conversation.lead_id == lead.id
        assert conversation.config_id == config_id
        assert conversation.message_count == 1

        ticket = session.query(TicketModel).one()
        assert ticket.status == "open"
        assert ticket.originated_from == "new_contact"
        assert ticket.window_open is True
        assert _utc(ticket.window_expires_at) == at(timedelta(hours=24))
        assert ticket.message_count == 1
        assert ticket.stage_id is not None

        message = session.query(MessageModel).one()
        assert message.wamid == "wamid.1"
        assert message.direction == "INBOUND"
        assert message.status == "received"
        assert message.source == "live"
        assert message.body == "Hola"
        assert message.ticket_id == ticket.id

        config = session.get(WhatsAppConfigModel, config_id)
        assert config.last_webhook_at is not None

    channels = sorted(call.args[0] for call in publisher.publish.await_args_list)
    assert channels == [f"chat:conversation:{conversation.id}", f"chat:org:{ORGANIZATION_ID}"]


@pytest.mark.asyncio
async def test_history_lead_gets_ticket_without_window(use_case, config_id, session_factory):
    """Test a contact first seen through history keeps its source and gets no window."""
    with session_factory() as session:
        session.add(
            LeadModel(
                organization_id=ORGANIZATION_ID,
                wa_id=CONTACT_WA_ID,
                phone=f"+{CONTACT_WA_ID}",
                source="history_sync",
                push_name="Ana (history)",
            )
        )
        session.commit()

    await use_case.execute(messages_payload([text_message("wamid.1")]))

    with session_factory() as session:
        lead = session.query(LeadModel).one()
        assert lead.source == "history_sync"
        assert lead.push_name == "Ana"

        ticket = session.query(TicketModel).one()
        assert ticket.originated_from == "history_lead"
        assert ticket.window_expires_at is None
        assert ticket.window_open is False


@pytest.mark.asyncio
async def test_inbound_message_renews_window_of_open_ticket(use_case, config_id, session_factory):
    """Test a later inbound message reuses the ticket and pushes its window."""
    await use_case.execute(messages_payload([text_message("wamid.1")]))
    await use_case.execute(messages_payload([text_message("wamid.2", offset=timedelta(hours=5))]))

    with session_factory() as session:
        ticket = session.query(TicketModel).one()
        assert ticket.message_count == 2
        assert _utc(ticket.window_expires_at) == at(timedelta(hours=29))
        assert session.query(ConversationModel).one().message_count == 2


@pytest.mark.asyncio
async def test_expired_ticket_is_closed_and_replaced(use_case, config_id, session_factory):
    """Test a message 31 days after ticket creation closes it and opens a new one."""
    await use_case.execute(messages_payload([text_message("wamid.1")]))
    await use_case.execute(messages_payload([text_message("wamid.2", offset=timedelta(days=31))]))

    with session_factory() as session:
        tickets = session.query(TicketModel).order_by(TicketModel.created_at).all()
        assert len(tickets) == 2
        old, new = tickets
        assert old.status == "closed"
        assert old.closed_reason == "expired_attribution"
        assert _utc(old.closed_at) == at(timedelta(days=31))
        assert new.status == "open"
        assert new.message_count == 1

        message = session.query(MessageModel).filter(MessageModel.wamid == "wamid.2").one()
        assert message.ticket_id == new.id


@pytest.mark.asyncio
async def test_organization_expiration_override(use_case, config_id, session_factory):
    """Test the organization's configured expiration keeps older tickets open."""
    with session_factory() as session:
        session.get(OrganizationSettingsModel, ORGANIZATION_ID).ticket_expiration_days = 60
        session.commit()

    await use_case.execute(messages_payload([text_message("wamid.1")]))
    await use_case.execute(messages_payload([text_message("wamid.2", offset=timedelta(days=31))]))

    with session_factory() as session:
        assert session.query(TicketModel).count() == 1


@pytest.mark.asyncio
async def test_redelivered_message_changes_nothing(use_case, config_id, session_factory):
    """Test a second delivery of the same wamid is a duplicate no-op."""
    payload = messages_payload([text_message("wamid.1")])

    await use_case.execute(payload)
    result = await use_case.execute(payload)

    assert result.duplicates == 1
    assert result.processed == 0
    with session_factory() as session:
        assert session.query(MessageModel).count() == 1
        assert session.query(ConversationModel).one().message_count == 1
        assert session.query(TicketModel).one().message_count == 1


@pytest.mark.asyncio
async def test_unique_constraint_race_counts_as_duplicate(
    config_id, session_factory, dispatcher, publisher
):
    """Test losing the wamid race rolls the whole message transaction back."""
    await HandleMessageUseCase(lambda: SqlAlchemyUnitOfWork(session_factory), dispatcher).execute(
        messages_payload([text_message("wamid.1")])
    )

    def racing_uow():
        uow = SqlAlchemyUnitOfWork(session_factory)
        uow.messages.exists = AsyncMock(return_value=False)
        return uow

    result = await HandleMessageUseCase(racing_uow, dispatcher).execute(
        messages_payload([text_message("wamid.1", offset=timedelta(hours=1))])
    )
    await dispatcher.drain()

    assert result.duplicates == 1
    assert result.failed == 0
    with session_factory() as session:
        assert session.query(MessageModel).count() == 1
        assert session.query(ConversationModel).one().message_count == 1
        ticket = session.query(TicketModel).one()
        assert ticket.message_count == 1
        assert _utc(ticket.window_expires_at) == at(timedelta(hours=24))
    assert publisher.publish.await_count == 2


def _stale_first_contact_uow(session_factory):
    """Unit of work that sees neither the message nor the lead a concurrent delivery committed."""

    def factory():
        uow = SqlAlchemyUnitOfWork(session_factory)
        uow.messages.exists = AsyncMock(return_value=False)
        uow.leads.find_by_identity = AsyncMock(return_value=None)
        return uow

    return factory


@pytest.mark.asyncio
async def test_first_contact_wamid_race_counts_as_duplicate(
    config_id, session_factory, dispatcher
):
    """Test losing the wamid race on a brand-new contact is a duplicate, not a failure."""
    await HandleMessageUseCase(lambda: SqlAlchemyUnitOfWork(session_factory), dispatcher).execute(
        messages_payload([text_message("wamid.1")])
    )

    result = await HandleMessageUseCase(
        _stale_first_contact_uow(session_factory), dispatcher
    ).execute(messages_payload([text_message("wamid.1", offset=timedelta(minutes=5))]))
    await dispatcher.drain()

    assert result.duplicates == 1
    assert result.failed == 0
    with session_factory() as session:
        assert session.query(LeadModel).count() == 1
        assert session.query(MessageModel).count() == 1
        assert session.query(ConversationModel).one().message_count == 1


@pytest.mark.asyncio
async def test_concurrent_first_messages_of_new_contact_both_persist(
    config_id, session_factory, dispatcher
):
    """Test a second message racing the lead creation still lands on the same lead."""
    await HandleMessageUseCase(lambda: SqlAlchemyUnitOfWork(session_factory), dispatcher).execute(
        messages_payload([text_message("wamid.1")])
    )

    result = await HandleMessageUseCase(
        _stale_first_contact_uow(session_factory), dispatcher
    ).execute(messages_payload([text_message("wamid.2", offset=timedelta(minutes=5))]))
    await dispatcher.drain()

    assert result.processed == 1
    assert result.failed == 0
    with session_factory() as session:
        lead = session.query(LeadModel).one()
        assert lead.source == "live_message"
        messages = session.query(MessageModel).all()
        assert sorted(m.wamid for m in messages) == ["wamid.1", "wamid.2"]
        assert {m.lead_id for m in messages} == {lead.id}
        assert session.query(ConversationModel).one().message_count == 2
        assert session.query(TicketModel).count() == 1


@pytest.mark.asyncio
async def test_malformed_message_does_not_fail_batch(use_case, config_id, session_factory):
    """Test one bad message is contained and the rest of the batch persists."""
    broken = text_message("wamid.2", offset=timedelta(minutes=1))
    del broken["type"]
    payload = messages_payload(
        [
            text_message("wamid.1"),
            broken,
            text_message("wamid.3", offset=timedelta(minutes=2)),
        ]
    )

    result = await use_case.execute(payload)

    assert result.processed == 2
    assert result.failed == 1
    with session_factory() as session:
        wamids = sorted(m.wamid for m in session.query(MessageModel).all())
        assert wamids == ["wamid.1", "wamid.3"]
        assert session.query(TicketModel).one().message_count == 2


@pytest.mark.asyncio
async def test_message_without_sender_is_skipped(use_case, config_id, session_factory):
    """Test messages without a contact identity are skipped."""
    message = text_message("wamid.1")
    del message["from"]

    result = await use_case.execute(messages_payload([message]))

    assert result.skipped == 1
    with session_factory() as session:
        assert session.query(LeadModel).count() == 0


@pytest.mark.asyncio
async def test_echo_creates_outbound_message_and_outbound_lead(use_case, config_id, session_factory):
    """Test an echo resolves the contact from `to` and records an outbound message."""
    echo = {
        "from": "15550001111",
        "to": CONTACT_WA_ID,
        "id": "wamid.echo1",
        "timestamp": ts(),
        "type": "text",
        "text": {"body": "Hola, soy tu asesor"},
    }

    result = await use_case.execute(messages_payload([], echoes=[echo]))

    assert result.processed == 1
    with session_factory() as session:
        lead = session.query(LeadModel).one()
        assert lead.source == "outbound_message"
        assert lead.wa_id == CONTACT_WA_ID
        assert lead.push_name is None

        message = session.query(MessageModel).one()
        assert message.direction == "OUTBOUND"
        assert message.status == "sent"


@pytest.mark.asyncio
async def test_echo_only_change_ignores_inbound_list(use_case, config_id, session_factory):
    """Test smb_message_echoes changes only process message_echoes."""
    value = {
        "metadata": {"phone_number_id": "PNID-1"},
        "messages": [text_message("wamid.in")],
        "message_echoes": [
            {
                "to": CONTACT_WA_ID,
                "id": "wamid.echo1",
                "timestamp": ts(),
                "type": "text",
                "text": {"body": "x"},
            }
        ],
    }

    result = await use_case.execute(envelope("smb_message_echoes", value), echo_only=True)

    assert result.processed == 1
    with session_factory() as session:
        assert [m.wamid for m in session.query(MessageModel).all()] == ["wamid.echo1"]


@pytest.mark.asyncio
async def test_echo_never_expires_ticket(use_case, config_id, session_factory):
    """Test echoes skip the expiry check and do not renew the window."""
    await use_case.execute(messages_payload([text_message("wamid.1")]))
    echo = {
        "to": CONTACT_WA_ID,
        "id": "wamid.echo1",
        "timestamp": ts(timedelta(days=31)),
        "type": "text",
        "text": {"body": "Seguimos?"},
    }

    await use_case.execute(messages_payload([], echoes=[echo]))

    with session_factory() as session:
        ticket = session.query(TicketModel).one()
        assert ticket.status == "open"
        assert ticket.message_count == 2
        assert _utc(ticket.window_expires_at) == at(timedelta(hours=24))


@pytest.mark.asyncio
async def test_attribution_tracks_last_touch_and_ad_history(use_case, config_id, session_factory):
    """Test ad changes overwrite the ad id, append history and reset enrichment."""
    await use_case.execute(messages_payload([text_message("wamid.1", referral=AD_REFERRAL)]))

    with session_factory() as session:
        tracking = session.query(TicketTrackingModel).one()
        assert tracking.meta_ad_id == "AD-1"
        assert tracking.utm_source == "facebook"
        assert tracking.enrichment_status == "PENDING"
        tracking.enrichment_status = "COMPLETED"
        session.commit()

    second_ad = {**AD_REFERRAL, "source_id": "AD-2", "ctwa_clid": "CLID-2"}
    await use_case.execute(
        messages_payload([text_message("wamid.2", offset=timedelta(hours=1), referral=second_ad)])
    )
    # same ad again: merge only
    await use_case.execute(
        messages_payload([text_message("wamid.3", offset=timedelta(hours=2), referral=second_ad)])
    )

    with session_factory() as session:
        tracking = session.query(TicketTrackingModel).one()
        assert tracking.meta_ad_id == "AD-2"
        assert tracking.ctwaclid == "CLID-2"
        assert tracking.enrichment_status == "PENDING"

        history = session.query(MetaAttributionHistoryModel).all()
        assert len(history) == 1
        assert history[0].old_ad_id == "AD-1"
        assert history[0].new_ad_id == "AD-2"


@pytest.mark.asyncio
async def test_non_ad_attribution_keeps_enrichment_state(use_case, config_id, session_factory):
    """Test UTM-only touches merge without resetting enrichment."""
    await use_case.execute(messages_payload([text_message("wamid.1", referral=AD_REFERRAL)]))
    with session_factory() as session:
        session.query(TicketTrackingModel).one().enrichment_status = "COMPLETED"
        session.commit()

    utm_only = {"source_url": "https://example.com/?utm_source=google", "source_type": "post"}
    await use_case.execute(
        messages_payload([text_message("wamid.2", offset=timedelta(hours=1), referral=utm_only)])
    )

    with session_factory() as session:
        tracking = session.query(TicketTrackingModel).one()
        assert tracking.utm_source == "google"
        assert tracking.meta_ad_id == "AD-1"
        assert tracking.enrichment_status == "COMPLETED"
        assert session.query(MetaAttributionHistoryModel).count() == 0


@pytest.mark.asyncio
async def test_publish_failure_does_not_fail_message(
    use_case, config_id, session_factory, dispatcher, publisher
):
    """Test real-time fan-out errors never roll back the message."""
    publisher.publish.side_effect = ConnectionError("redis down")

    result = await use_case.execute(messages_payload([text_message("wamid.1")]))
    await dispatcher.drain()

    assert result.processed == 1
    with session_factory() as session:
        assert session.query(MessageModel).count() == 1


@pytest.mark.asyncio
async def test_missing_phone_number_id_raises(use_case, config_id):
    """Test payloads without metadata.phone_number_id are fatal."""
    with pytest.raises(InvalidPayloadError):
        await use_case.execute(messages_payload([text_message("wamid.1")], phone_number_id=None))


@pytest.mark.asyncio
async def test_unknown_config_raises(use_case, config_id):
    """Test payloads for an unregistered phone number are fatal."""
    with pytest.raises(ConfigNotFoundError):
        await use_case.execute(
            messages_payload([text_message("wamid.1")], phone_number_id="PNID-UNKNOWN")
        )
