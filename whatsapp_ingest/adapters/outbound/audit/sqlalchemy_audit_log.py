"""SQLAlchemy-backed audit log adapter."""

from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from whatsapp_ingest.adapters.outbound.persistence.models import WhatsAppAuditLogModel
from whatsapp_ingest.application.dtos.notifications import AuditEntry
from whatsapp_ingest.application.ports.audit_log import AuditLog
from whatsapp_ingest.infrastructure.db import get_db_session
from whatsapp_ingest.infrastructure.logging.logger import logger


class SqlAlchemyAuditLog(AuditLog):
    """Writes audit entries in a session of their own, outside any handler transaction."""

    def __init__(self, session_factory: Callable[[], Session] = get_db_session) -> None:
        """
        Initialize audit log.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
        """
        self._session_factory = session_factory

    async def log(self, entry: AuditEntry) -> None:
        """
        Persist an audit entry; failures are logged and swallowed.

        Args:
            entry: Structured audit event
        """
        db: Session = self._session_factory()
        try:
            db.add(
                WhatsAppAuditLogModel(
                    organization_id=entry.organization_id,
                    action=entry.action,
                    description=entry.description,
                    tracking_code=entry.tracking_code,
                    connection_id=entry.connection_id,
                    metadata_json=entry.metadata,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while writing audit entry {entry.action}: {str(e)}")
        finally:
            db.close()
