"""Displayable content of a raw WhatsApp message."""

from datetime import datetime, timezone
from typing import Any, Optional

from whatsapp_ingest.application.dtos.message import MessageContent
from whatsapp_ingest.application.errors import MalformedMessageError

MEDIA_TYPES = ("image", "video", "audio", "voice", "document", "sticker")

PLACEHOLDERS = {
    "audio": "[Audio]",
    "voice": "[Voice message]",
    "sticker": "[Sticker]",
}


def normalize_phone(wa_id: str) -> str:
    """Return the contact id as an E.164-style phone number."""
    digits = wa_id.strip()
    return digits if digits.startswith("+") else f"+{digits}"


def parse_timestamp(value: Any) -> datetime:
    """Parse a provider unix timestamp (seconds, possibly as a string); now when absent."""
    if value in (None, ""):
        return datetime.now(timezone.utc)
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError) as e:
        raise MalformedMessageError(f"Invalid timestamp: {value!r}") from e


def _media_url(section: dict[str, Any]) -> Optional[str]:
    media_id = section.get("id")
    return f"meta_id:{media_id}" if media_id else None


def _interactive_body(section: dict[str, Any]) -> Optional[str]:
    for key in ("button_reply", "list_reply"):
        reply = section.get(key)
        if isinstance(reply, dict) and reply.get("title"):
            return reply["title"]
    nfm = section.get("nfm_reply")
    if isinstance(nfm, dict):
        return nfm.get("body") or nfm.get("name")
    return None


def _location_body(section: dict[str, Any]) -> str:
    name = section.get("name") or section.get("address") or "Shared location"
    return f"Location: {name} ({section.get('latitude')}, {section.get('longitude')})"


def extract_message_content(message: dict[str, Any]) -> MessageContent:
    """
    Extract type, displayable body and media reference from a raw message.

    Args:
        message: Raw message object from the webhook payload

    Returns:
        MessageContent

    Raises:
        MalformedMessageError: If the message has no type
    """
    message_type = message.get("type")
    if not message_type:
        raise MalformedMessageError(f"Message {message.get('id')!r} has no type")

    section = message.get(message_type)
    if not isinstance(section, dict):
        section = {}

    body: Optional[str] = None
    media_url: Optional[str] = None

    if message_type == "text":
        body = section.get("body")
    elif message_type in MEDIA_TYPES:
        media_url = _media_url(section)
        if message_type in PLACEHOLDERS:
            body = PLACEHOLDERS[message_type]
        elif message_type == "document":
            body = section.get("caption") or section.get("filename")
        else:
            body = section.get("caption")
    elif message_type == "location":
        body = _location_body(section)
    elif message_type == "button":
        body = section.get("text")
    elif message_type == "interactive":
        body = _interactive_body(section)
    elif message_type == "reaction":
        emoji = section.get("emoji")
        body = f"Reacted {emoji}" if emoji else "Removed reaction"
    elif message_type == "contacts":
        contacts = message.get("contacts") or []
        names = [c.get("name", {}).get("formatted_name") for c in contacts if isinstance(c, dict)]
        body = "Shared contact: " + ", ".join(n for n in names if n) if any(names) else "[Contact]"
    else:
        body = f"Unsupported message type: {message_type}"

    return MessageContent(type=message_type, body=body, media_url=media_url)
