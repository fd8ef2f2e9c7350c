"""No-op webhook log for when payload logging is disabled."""

from typing import Any, Optional

from whatsapp_ingest.application.ports.webhook_log_repository import WebhookLogRepository


class NoOpWebhookLogRepository(WebhookLogRepository):
    """No-op adapter that drops every payload."""

    async def record(
        self,
        payload: dict[str, Any],
        event_type: Optional[str],
        phone_number_id: Optional[str],
        signature_valid: Optional[bool],
    ) -> None:
        pass
