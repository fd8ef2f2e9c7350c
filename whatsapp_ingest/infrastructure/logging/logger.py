"""Structured logger for webhook processing."""

import logging
from typing import Any

_logger = logging.getLogger("whatsapp_ingest")
_logger.setLevel(logging.INFO)

if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def log_webhook(
    component: str,
    event: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """
    Log a structured webhook processing event.

    Args:
        component: Component name (e.g., 'router', 'message_handler', 'http')
        event: Short event name (e.g., 'message_persisted', 'duplicate_skipped')
        level: Log level (default: INFO)
        **kwargs: Additional structured fields to log
    """
    fields = {"component": component, "event": event}
    fields.update({k: v for k, v in kwargs.items() if v is not None})

    # key=value pairs for grep-ability
    log_parts = [f"{k}={v!r}" for k, v in fields.items()]
    _logger.log(level, " | ".join(log_parts))


logger = _logger
