"""SQLAlchemy-backed raw webhook log."""

from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from whatsapp_ingest.application.ports.webhook_log_repository import WebhookLogRepository
from whatsapp_ingest.infrastructure.db import get_db_session
from whatsapp_ingest.infrastructure.logging.logger import logger

from .models import WhatsAppWebhookLogModel


class SqlAlchemyWebhookLogRepository(WebhookLogRepository):
    """Persists every inbound payload in its own session."""

    def __init__(self, session_factory: Callable[[], Session] = get_db_session) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        payload: dict[str, Any],
        event_type: Optional[str],
        phone_number_id: Optional[str],
        signature_valid: Optional[bool],
    ) -> None:
        db: Session = self._session_factory()
        try:
            db.add(
                WhatsAppWebhookLogModel(
                    event_type=event_type,
                    phone_number_id=phone_number_id,
                    signature_valid=signature_valid,
                    payload=payload,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while logging webhook {event_type}: {str(e)}")
        finally:
            db.close()
