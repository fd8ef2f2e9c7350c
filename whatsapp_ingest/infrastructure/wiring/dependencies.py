"""Dependency injection factory functions."""

from functools import lru_cache

from whatsapp_ingest.adapters.outbound.audit.sqlalchemy_audit_log import SqlAlchemyAuditLog
from whatsapp_ingest.adapters.outbound.cache.noop_connection_cache import NoOpConnectionCache
from whatsapp_ingest.adapters.outbound.cache.redis_connection_cache import RedisConnectionCache
from whatsapp_ingest.adapters.outbound.persistence.noop_webhook_log_repository import (
    NoOpWebhookLogRepository,
)
from whatsapp_ingest.adapters.outbound.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
)
from whatsapp_ingest.adapters.outbound.persistence.sqlalchemy_webhook_log_repository import (
    SqlAlchemyWebhookLogRepository,
)
from whatsapp_ingest.adapters.outbound.realtime.noop_realtime_publisher import (
    NoOpRealtimePublisher,
)
from whatsapp_ingest.adapters.outbound.realtime.redis_realtime_publisher import (
    RedisRealtimePublisher,
)
from whatsapp_ingest.application.ports.audit_log import AuditLog
from whatsapp_ingest.application.ports.connection_cache import ConnectionCache
from whatsapp_ingest.application.ports.realtime_publisher import RealtimePublisher
from whatsapp_ingest.application.ports.unit_of_work import UnitOfWork
from whatsapp_ingest.application.ports.webhook_log_repository import WebhookLogRepository
from whatsapp_ingest.application.use_cases.handle_history_use_case import HandleHistoryUseCase
from whatsapp_ingest.application.use_cases.handle_message_use_case import HandleMessageUseCase
from whatsapp_ingest.application.use_cases.handle_onboarding_use_case import (
    HandleOnboardingUseCase,
)
from whatsapp_ingest.application.use_cases.handle_state_sync_use_case import (
    HandleStateSyncUseCase,
)
from whatsapp_ingest.application.use_cases.post_commit import PostCommitDispatcher
from whatsapp_ingest.application.use_cases.webhook_processor import WebhookProcessor
from whatsapp_ingest.domain.policies.ticket_window_policy import TicketWindowPolicy
from whatsapp_ingest.infrastructure.config.settings import settings
from whatsapp_ingest.infrastructure.logging.logger import log_webhook


def create_unit_of_work() -> UnitOfWork:
    """
    Factory function to create a unit of work.

    Returns:
        UnitOfWork instance bound to a fresh database session
    """
    if not settings.database_url:
        raise ValueError("DATABASE_URL is required for webhook processing")
    return SqlAlchemyUnitOfWork()


@lru_cache
def create_connection_cache() -> ConnectionCache:
    """
    Factory function to create the connection cache.

    Returns:
        Shared ConnectionCache instance (Redis or NoOp)
    """
    if not settings.connection_cache_enabled or not settings.redis_url:
        return NoOpConnectionCache()

    return RedisConnectionCache(
        settings.redis_url,
        onboarding_ttl_seconds=settings.onboarding_cache_ttl_seconds,
        connection_ttl_seconds=settings.connection_cache_ttl_seconds,
    )


@lru_cache
def create_realtime_publisher() -> RealtimePublisher:
    """
    Factory function to create the real-time publisher.

    Returns:
        Shared RealtimePublisher instance (Redis or NoOp)
    """
    if not settings.realtime_enabled or not settings.redis_url:
        return NoOpRealtimePublisher()

    return RedisRealtimePublisher(settings.redis_url)


def create_audit_log() -> AuditLog:
    """
    Factory function to create the audit log.

    Returns:
        AuditLog instance
    """
    return SqlAlchemyAuditLog()


def create_webhook_log_repository() -> WebhookLogRepository:
    """
    Factory function to create the raw webhook log.

    Returns:
        WebhookLogRepository instance (SQLAlchemy or NoOp)
    """
    if not settings.webhook_log_enabled or not settings.database_url:
        return NoOpWebhookLogRepository()

    return SqlAlchemyWebhookLogRepository()


@lru_cache
def create_post_commit_dispatcher() -> PostCommitDispatcher:
    """
    Factory function to create the shared post-commit dispatcher.

    Returns:
        PostCommitDispatcher instance
    """
    return PostCommitDispatcher(create_realtime_publisher(), logger=log_webhook)


def create_webhook_processor() -> WebhookProcessor:
    """
    Factory function to create WebhookProcessor with every handler wired.

    Returns:
        WebhookProcessor instance
    """
    window_policy = TicketWindowPolicy(
        window_hours=settings.message_window_hours,
        default_expiration_days=settings.default_ticket_expiration_days,
    )

    return WebhookProcessor(
        message_handler=HandleMessageUseCase(
            create_unit_of_work,
            create_post_commit_dispatcher(),
            window_policy=window_policy,
            logger=log_webhook,
        ),
        history_handler=HandleHistoryUseCase(create_unit_of_work, logger=log_webhook),
        state_sync_handler=HandleStateSyncUseCase(create_unit_of_work, logger=log_webhook),
        onboarding_handler=HandleOnboardingUseCase(
            create_unit_of_work,
            create_connection_cache(),
            create_audit_log(),
            logger=log_webhook,
        ),
        logger=log_webhook,
    )


async def shutdown_adapters() -> None:
    """Drain pending real-time publications, then close the shared Redis clients."""
    await create_post_commit_dispatcher().drain()
    await create_realtime_publisher().close()
    await create_connection_cache().close()
