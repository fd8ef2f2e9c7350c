"""Shared fixtures: in-memory SQLite database and seeded WhatsApp config.

Every session shares the single StaticPool connection, so tests open short-lived
sessions (``with session_factory() as session:``) and never keep one open across
a use case call.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tests.factories import ORGANIZATION_ID, PHONE_NUMBER_ID
from whatsapp_ingest.adapters.outbound.persistence.models import (
    Base,
    OrganizationSettingsModel,
    WhatsAppConfigModel,
)
from whatsapp_ingest.adapters.outbound.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
)
from whatsapp_ingest.application.use_cases.post_commit import PostCommitDispatcher


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine that supports SAVEPOINT."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite manages transactions itself unless told otherwise
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Create a session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def uow_factory(session_factory):
    """Factory returning a unit of work over the test database."""
    return lambda: SqlAlchemyUnitOfWork(session_factory)


@pytest.fixture
def config_id(session_factory):
    """Seed a WhatsApp config for ORGANIZATION_ID and return its id."""
    with session_factory() as session:
        model = WhatsAppConfigModel(
            organization_id=ORGANIZATION_ID,
            phone_number_id=PHONE_NUMBER_ID,
            waba_id="WABA-1",
        )
        session.add(model)
        session.add(OrganizationSettingsModel(organization_id=ORGANIZATION_ID))
        session.flush()
        seeded_id = model.id
        session.commit()
    return seeded_id


@pytest.fixture
def publisher():
    """Real-time publisher mock."""
    publisher = AsyncMock()
    publisher.publish = AsyncMock()
    return publisher


@pytest.fixture
def dispatcher(publisher):
    """Post-commit dispatcher over the publisher mock."""
    return PostCommitDispatcher(publisher)
