"""Unit tests for HandleHistoryUseCase."""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from tests.factories import CONTACT_WA_ID, ORGANIZATION_ID, PHONE_NUMBER_ID, envelope, ts
from whatsapp_ingest.adapters.outbound.persistence.models import (
    ConversationModel,
    LeadModel,
    MessageModel,
    TicketModel,
    WhatsAppConfigModel,
    WhatsAppHistorySyncModel,
)
from whatsapp_ingest.application.errors import ConfigNotFoundError, InvalidPayloadError
from whatsapp_ingest.application.use_cases.handle_history_use_case import HandleHistoryUseCase

OTHER_WA_ID = "5215587654321"


def _history_message(
    wamid: str, sender: str = CONTACT_WA_ID, status: Optional[str] = None, from_me: bool = False
) -> dict[str, Any]:
    message: dict[str, Any] = {
        "from": sender,
        "id": wamid,
        "timestamp": ts(),
        "type": "text",
        "text": {"body": f"body of {wamid}"},
        "history_context": {"from_me": from_me},
    }
    if status:
        message["history_context"]["status"] = status
    return message


def _thread(wa_id: Optional[str], messages: list[dict[str, Any]], username: str = "Ana") -> dict:
    context = {"username": username}
    if wa_id:
        context["wa_id"] = wa_id
    return {"id": f"thread-{wa_id}", "context": context, "messages": messages}


def _history_value(threads: list[dict[str, Any]], progress: int = 50, chunk_order: int = 1) -> dict:
    return {
        "messaging_product": "whatsapp",
        "metadata": {"phone_number_id": PHONE_NUMBER_ID},
        "history": [
            {
                "metadata": {"phase": 0, "chunk_order": chunk_order, "progress": progress},
                "threads": threads,
            }
        ],
    }


@pytest.fixture
def use_case(uow_factory):
    """Create use case over the SQLite unit of work."""
    return HandleHistoryUseCase(uow_factory)


@pytest.mark.asyncio
async def test_history_import_creates_leads_and_messages_without_tickets(
    use_case, config_id, session_factory
):
    """Test threads become leads, conversations and ticketless history messages."""
    value = _history_value(
        [
            _thread(
                CONTACT_WA_ID,
                [
                    _history_message("wamid.h1", status="DELIVERED"),
                    _history_message("wamid.h2", from_me=True),
                ],
            )
        ]
    )

    result = await use_case.execute(envelope("history", value))

    assert result.chunks == 1
    assert result.threads_processed == 1
    assert result.messages_imported == 2
    with session_factory() as session:
        lead = session.query(LeadModel).one()
        assert lead.source == "history_sync"
        assert lead.push_name == "Ana"
        assert lead.last_synced_at is not None
        assert session.query(ConversationModel).count() == 1
        assert session.query(TicketModel).count() == 0

        messages = {m.wamid: m for m in session.query(MessageModel).all()}
        assert all(m.ticket_id is None for m in messages.values())
        assert all(m.source == "history" for m in messages.values())
        assert messages["wamid.h1"].direction == "INBOUND"
        assert messages["wamid.h1"].status == "DELIVERED"
        assert messages["wamid.h2"].direction == "OUTBOUND"
        assert messages["wamid.h2"].status == "read"


@pytest.mark.asyncio
async def test_chunk_progress_updates_sync_log_and_config(use_case, config_id, session_factory):
    """Test a partial chunk is logged and moves the config to syncing."""
    await use_case.execute(
        _history_value([_thread(CONTACT_WA_ID, [_history_message("wamid.h1")])], progress=40)
    )

    with session_factory() as session:
        sync_log = session.query(WhatsAppHistorySyncModel).one()
        assert sync_log.status == "completed"
        assert sync_log.phase == 0
        assert sync_log.chunk_order == 1
        assert sync_log.progress == 40
        assert sync_log.threads_processed == 1
        assert sync_log.messages_imported == 1

        config = session.get(WhatsAppConfigModel, config_id)
        assert config.history_sync_status == "syncing"
        assert config.history_sync_progress == 40
        assert config.history_sync_chunk_order == 1
        assert config.history_sync_started_at is not None
        assert config.history_sync_completed_at is None
        assert config.last_webhook_at is not None


@pytest.mark.asyncio
async def test_non_integer_progress_is_coerced(uow_factory, config_id, session_factory):
    """Test fractional, unreadable and out-of-range progress values never abort a chunk."""
    logger = MagicMock()
    use_case = HandleHistoryUseCase(uow_factory, logger=logger)

    result = await use_case.execute(
        _history_value([_thread(CONTACT_WA_ID, [_history_message("wamid.h1")])], progress="50.5")
    )
    await use_case.execute(_history_value([], progress="abc", chunk_order=2))
    await use_case.execute(_history_value([], progress=250, chunk_order=3))

    assert result.threads_processed == 1
    assert result.messages_imported == 1
    with session_factory() as session:
        logs = session.query(WhatsAppHistorySyncModel).order_by(WhatsAppHistorySyncModel.chunk_order).all()
        assert [log.progress for log in logs] == [50, 0, 100]
        config = session.get(WhatsAppConfigModel, config_id)
        assert config.history_sync_status == "completed"
        assert config.history_sync_progress == 100
    warnings = [c for c in logger.call_args_list if c.args[1] == "invalid_progress"]
    assert len(warnings) == 1
    assert warnings[0].kwargs["progress"] == "'abc'"


@pytest.mark.asyncio
async def test_final_chunk_completes_sync(use_case, config_id, session_factory):
    """Test progress 100 transitions the config to completed."""
    await use_case.execute(_history_value([], progress=40, chunk_order=1))
    with session_factory() as session:
        started_at = session.get(WhatsAppConfigModel, config_id).history_sync_started_at

    await use_case.execute(_history_value([], progress=100, chunk_order=2))

    with session_factory() as session:
        config = session.get(WhatsAppConfigModel, config_id)
        assert config.history_sync_status == "completed"
        assert config.history_sync_progress == 100
        assert config.history_sync_completed_at is not None
        assert config.history_sync_started_at == started_at
        assert session.query(WhatsAppHistorySyncModel).count() == 2


@pytest.mark.asyncio
async def test_existing_lead_keeps_its_source(use_case, config_id, session_factory):
    """Test history never overwrites the source of a lead created elsewhere."""
    with session_factory() as session:
        session.add(
            LeadModel(
                organization_id=ORGANIZATION_ID,
                wa_id=CONTACT_WA_ID,
                phone=f"+{CONTACT_WA_ID}",
                source="live_message",
            )
        )
        session.commit()

    await use_case.execute(
        _history_value([_thread(CONTACT_WA_ID, [_history_message("wamid.h1")], username="Ana M")])
    )

    with session_factory() as session:
        lead = session.query(LeadModel).one()
        assert lead.source == "live_message"
        assert lead.push_name == "Ana M"


@pytest.mark.asyncio
async def test_redelivered_history_only_updates_status(use_case, config_id, session_factory):
    """Test history upserts by wamid and only refreshes the status."""
    await use_case.execute(
        _history_value([_thread(CONTACT_WA_ID, [_history_message("wamid.h1", status="DELIVERED")])])
    )

    result = await use_case.execute(
        _history_value([_thread(CONTACT_WA_ID, [_history_message("wamid.h1", status="READ")])])
    )

    assert result.messages_imported == 0
    assert result.messages_updated == 1
    with session_factory() as session:
        message = session.query(MessageModel).one()
        assert message.status == "READ"
        assert session.query(WhatsAppHistorySyncModel).count() == 1


@pytest.mark.asyncio
async def test_failing_items_do_not_abort_chunk(use_case, config_id, session_factory):
    """Test bad messages and bad threads are contained."""
    bad_message = _history_message("wamid.bad")
    bad_message["timestamp"] = "not-a-timestamp"
    value = _history_value(
        [
            _thread(CONTACT_WA_ID, [_history_message("wamid.h1"), bad_message]),
            _thread(None, [_history_message("wamid.orphan")]),
            _thread(OTHER_WA_ID, [_history_message("wamid.h2", sender=OTHER_WA_ID)]),
        ]
    )

    result = await use_case.execute(value)

    assert result.threads_processed == 2
    assert result.threads_failed == 1
    assert result.messages_imported == 2
    assert result.messages_failed == 1
    with session_factory() as session:
        wamids = sorted(m.wamid for m in session.query(MessageModel).all())
        assert wamids == ["wamid.h1", "wamid.h2"]
        assert session.query(LeadModel).count() == 2


@pytest.mark.asyncio
async def test_empty_history_is_noop(use_case, config_id, session_factory):
    """Test payloads without chunks write nothing."""
    value = {"metadata": {"phone_number_id": PHONE_NUMBER_ID}, "history": []}

    result = await use_case.execute(value)

    assert result.chunks == 0
    with session_factory() as session:
        assert session.query(WhatsAppHistorySyncModel).count() == 0


@pytest.mark.asyncio
async def test_history_structural_errors_raise(use_case, config_id):
    """Test missing phone number id and unknown configs are fatal."""
    with pytest.raises(InvalidPayloadError):
        await use_case.execute({"history": []})

    with pytest.raises(ConfigNotFoundError):
        await use_case.execute({"metadata": {"phone_number_id": "PNID-UNKNOWN"}, "history": []})
