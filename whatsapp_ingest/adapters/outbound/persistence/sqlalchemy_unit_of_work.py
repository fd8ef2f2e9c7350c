"""SQLAlchemy unit of work adapter."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from whatsapp_ingest.application.ports.unit_of_work import UnitOfWork
from whatsapp_ingest.infrastructure.db import get_db_session
from whatsapp_ingest.infrastructure.logging.logger import logger

from .repositories import (
    SqlAlchemyConnectionRepository,
    SqlAlchemyConversationRepository,
    SqlAlchemyHistorySyncRepository,
    SqlAlchemyLeadRepository,
    SqlAlchemyMessageRepository,
    SqlAlchemyOnboardingRepository,
    SqlAlchemyOrganizationSettingsRepository,
    SqlAlchemyTicketRepository,
    SqlAlchemyTicketTrackingRepository,
    SqlAlchemyWhatsAppConfigRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Unit of work over one SQLAlchemy session."""

    def __init__(self, session_factory: Callable[[], Session] = get_db_session) -> None:
        """
        Initialize unit of work.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
        """
        self._session = session_factory()
        self.configs = SqlAlchemyWhatsAppConfigRepository(self._session)
        self.leads = SqlAlchemyLeadRepository(self._session)
        self.conversations = SqlAlchemyConversationRepository(self._session)
        self.tickets = SqlAlchemyTicketRepository(self._session)
        self.trackings = SqlAlchemyTicketTrackingRepository(self._session)
        self.messages = SqlAlchemyMessageRepository(self._session)
        self.connections = SqlAlchemyConnectionRepository(self._session)
        self.onboardings = SqlAlchemyOnboardingRepository(self._session)
        self.history_syncs = SqlAlchemyHistorySyncRepository(self._session)
        self.organizations = SqlAlchemyOrganizationSettingsRepository(self._session)

    async def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(f"Database error while committing unit of work: {str(e)}")
            raise

    async def rollback(self) -> None:
        self._session.rollback()

    async def close(self) -> None:
        self._session.close()

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        nested = self._session.begin_nested()
        try:
            yield
        except Exception:
            nested.rollback()
            raise
        else:
            nested.commit()
