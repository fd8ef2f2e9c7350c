"""Raw webhook log port."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class WebhookLogRepository(ABC):
    """Port interface for persisting every inbound payload."""

    @abstractmethod
    async def record(
        self,
        payload: dict[str, Any],
        event_type: Optional[str],
        phone_number_id: Optional[str],
        signature_valid: Optional[bool],
    ) -> None:
        """
        Persist a raw payload. Implementations must not raise.

        Args:
            payload: Decoded webhook body
            event_type: Classified event token, if any
            phone_number_id: Phone number id from the payload metadata, if any
            signature_valid: Signature check outcome, None when validation is disabled
        """
        pass
