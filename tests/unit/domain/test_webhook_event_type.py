"""Unit tests for webhook event classification."""

from tests.factories import envelope
from whatsapp_ingest.domain.value_objects.webhook_event_type import (
    WebhookEventType,
    change_value_or_payload,
    extract_event_token,
    first_change,
)


def test_account_update_token_is_inner_event():
    """Test account_update changes are classified by value.event."""
    payload = envelope("account_update", {"event": "PARTNER_ADDED", "waba_info": {"waba_id": "W"}})

    assert extract_event_token(payload) == "PARTNER_ADDED"
    assert WebhookEventType.parse("PARTNER_ADDED") == WebhookEventType.PARTNER_ADDED


def test_message_family_token_is_field_name():
    """Test message-family changes are classified by field."""
    for field in (
        "messages",
        "statuses",
        "message_template_status_update",
        "history",
        "smb_app_state_sync",
        "smb_message_echoes",
    ):
        assert extract_event_token(envelope(field, {})) == field


def test_payload_without_first_change_has_no_token():
    """Test empty or malformed envelopes yield no event type."""
    assert extract_event_token({}) is None
    assert extract_event_token({"entry": []}) is None
    assert extract_event_token({"entry": [{"changes": []}]}) is None
    assert extract_event_token("not a dict") is None
    assert first_change({"entry": [{"changes": ["x"]}]}) is None


def test_account_update_with_non_object_value_has_no_token():
    """Test account updates whose value is not an object are not classified."""
    assert extract_event_token(envelope("account_update", "oops")) is None
    assert extract_event_token(envelope("account_update", None)) is None
    assert extract_event_token(envelope("account_update", ["PARTNER_ADDED"])) is None


def test_unknown_field_has_no_token():
    """Test fields outside the known set are not classified."""
    assert extract_event_token(envelope("calls", {})) is None


def test_parse_unknown_token_returns_none():
    """Test unknown tokens do not map to an event type."""
    assert WebhookEventType.parse("PARTNER_APP_INSTALLED") is None
    assert WebhookEventType.parse(None) is None


def test_account_update_membership():
    """Test only PARTNER_* events are account updates."""
    assert WebhookEventType.PARTNER_REMOVED.is_account_update
    assert not WebhookEventType.MESSAGES.is_account_update


def test_change_value_or_payload_accepts_both_shapes():
    """Test enveloped and bare change values resolve to the same value."""
    value = {"metadata": {"phone_number_id": "P"}, "history": []}

    assert change_value_or_payload(envelope("history", value)) == value
    assert change_value_or_payload(value) == value
