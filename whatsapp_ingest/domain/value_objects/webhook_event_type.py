"""Webhook event classification."""

from enum import Enum
from typing import Any, Optional

ACCOUNT_UPDATE_FIELD = "account_update"


class WebhookEventType(str, Enum):
    """Closed set of webhook event kinds the router knows about."""

    PARTNER_ADDED = "PARTNER_ADDED"
    PARTNER_REMOVED = "PARTNER_REMOVED"
    PARTNER_REINSTATED = "PARTNER_REINSTATED"
    MESSAGES = "messages"
    MESSAGE_ECHOES = "smb_message_echoes"
    STATUSES = "statuses"
    TEMPLATE_STATUS_UPDATE = "message_template_status_update"
    HISTORY = "history"
    STATE_SYNC = "smb_app_state_sync"

    @classmethod
    def parse(cls, token: Optional[str]) -> Optional["WebhookEventType"]:
        """Map a raw event token to a known event type, or None."""
        if not token:
            return None
        try:
            return cls(token)
        except ValueError:
            return None

    @property
    def is_account_update(self) -> bool:
        """Whether the event belongs to the connection lifecycle."""
        return self in ACCOUNT_EVENTS


ACCOUNT_EVENTS = frozenset(
    {
        WebhookEventType.PARTNER_ADDED,
        WebhookEventType.PARTNER_REMOVED,
        WebhookEventType.PARTNER_REINSTATED,
    }
)

FIELD_EVENTS = frozenset(
    {
        WebhookEventType.MESSAGES.value,
        WebhookEventType.MESSAGE_ECHOES.value,
        WebhookEventType.STATUSES.value,
        WebhookEventType.TEMPLATE_STATUS_UPDATE.value,
        WebhookEventType.HISTORY.value,
        WebhookEventType.STATE_SYNC.value,
    }
)


def first_change(payload: Any) -> Optional[dict[str, Any]]:
    """Return ``entry[0].changes[0]`` or None when the payload has no such change."""
    if not isinstance(payload, dict):
        return None
    entries = payload.get("entry")
    if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
        return None
    changes = entries[0].get("changes")
    if not isinstance(changes, list) or not changes or not isinstance(changes[0], dict):
        return None
    return changes[0]


def extract_event_token(payload: Any) -> Optional[str]:
    """
    Extract the raw event token of a webhook payload.

    For ``account_update`` changes the token is the inner ``value.event``;
    for the known message-family fields it is the field name itself.

    Returns:
        Event token, or None when the payload carries no recognizable event
    """
    change = first_change(payload)
    if change is None:
        return None

    field = change.get("field")
    if field == ACCOUNT_UPDATE_FIELD:
        value = change.get("value")
        if not isinstance(value, dict):
            return None
        return value.get("event") or None
    if field in FIELD_EVENTS:
        return field
    return None


def change_value_or_payload(payload: Any) -> dict[str, Any]:
    """
    Return the ``entry[0].changes[0].value`` of a payload, or the payload itself.

    History and directory-sync handlers accept both the enveloped webhook and the
    bare change value.
    """
    change = first_change(payload)
    if change is not None and isinstance(change.get("value"), dict):
        return change["value"]
    return payload if isinstance(payload, dict) else {}
