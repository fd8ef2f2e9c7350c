"""Handle account update webhooks (PARTNER_ADDED / PARTNER_REMOVED / PARTNER_REINSTATED)."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from whatsapp_ingest.application.dtos.results import OnboardingResult
from whatsapp_ingest.application.errors import (
    AmbiguousConnectionError,
    InvalidPayloadError,
    OnboardingNotFoundError,
)
from whatsapp_ingest.application.ports.audit_log import AuditLog
from whatsapp_ingest.application.ports.connection_cache import ConnectionCache
from whatsapp_ingest.application.ports.unit_of_work import UnitOfWork
from whatsapp_ingest.domain.entities.connection import Connection, Onboarding
from whatsapp_ingest.domain.value_objects.webhook_event_type import WebhookEventType, first_change

OUTCOME_CONNECTED = "connected"
OUTCOME_DISCONNECTED = "disconnected"
OUTCOME_REINSTATED = "reinstated"
OUTCOME_EXPIRED = "expired"
OUTCOME_CONNECTION_NOT_FOUND = "connection_not_found"
OUTCOME_PHANTOM = "phantom"


class HandleOnboardingUseCase:
    """
    Manage the connection lifecycle of a provider account.

    The target organization is resolved through the onboarding tracking code when the
    payload carries one, otherwise through the owner business id of an existing
    connection (coexistence mode). Cache writes and audit entries happen after the
    transaction commits and never fail the event.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        cache: ConnectionCache,
        audit_log: AuditLog,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize handle onboarding use case.

        Args:
            uow_factory: Factory returning a fresh unit of work
            cache: Cache in front of onboarding and connection lookups
            audit_log: Connection-lifecycle audit sink
            logger: Optional structured logger function (component, event, level, **kwargs)
        """
        self._uow_factory = uow_factory
        self._cache = cache
        self._audit_log = audit_log
        self._logger = logger

    def _log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self._logger:
            self._logger("onboarding_handler", event, level, **kwargs)

    async def execute(self, payload: dict[str, Any], event_type: WebhookEventType) -> OnboardingResult:
        """
        Apply an account update.

        Args:
            payload: Raw webhook payload
            event_type: One of the PARTNER_* event types

        Returns:
            Outcome of the update

        Raises:
            InvalidPayloadError: If the change value or waba id is missing
            OnboardingNotFoundError: If the tracking code matches no onboarding session
            AmbiguousConnectionError: If several connections share the owner business id
        """
        if not event_type.is_account_update:
            raise ValueError(f"Not an account update event: {event_type.value}")

        change = first_change(payload)
        value = change.get("value") if change else None
        if not isinstance(value, dict):
            raise InvalidPayloadError("Account update has no change value")

        waba_info = value.get("waba_info") or {}
        waba_id = waba_info.get("waba_id")
        if not waba_id:
            raise InvalidPayloadError("Account update has no waba_info.waba_id")
        owner_business_id = waba_info.get("owner_business_id")
        phone_number_id = waba_info.get("phone_number_id")
        tracking_code = (value.get("sessionInfo") or {}).get("trackingCode")

        self._log(
            "account_update",
            event_type=event_type.value,
            waba_id=waba_id,
            tracking_code=tracking_code,
        )

        if tracking_code:
            return await self._apply_with_tracking_code(
                event_type, tracking_code, waba_id, owner_business_id, phone_number_id
            )

        if owner_business_id:
            result = await self._apply_coexistence(event_type, waba_id, owner_business_id)
            if result is not None:
                return result

        # no tracking code and no known owner business: orphaned account, nothing to claim yet
        self._log("phantom_connection", logging.WARNING, waba_id=waba_id, owner_business_id=owner_business_id)
        return OnboardingResult(outcome=OUTCOME_PHANTOM)

    async def _get_onboarding(self, uow: UnitOfWork, tracking_code: str) -> Optional[Onboarding]:
        """Cache first, database on a miss (written back to the cache)."""
        onboarding = await self._cache.get_onboarding(tracking_code)
        if onboarding is not None:
            return onboarding
        onboarding = await uow.onboardings.get_by_tracking_code(tracking_code)
        if onboarding is not None:
            await self._cache.cache_onboarding(onboarding)
        return onboarding

    async def _apply_with_tracking_code(
        self,
        event_type: WebhookEventType,
        tracking_code: str,
        waba_id: str,
        owner_business_id: Optional[str],
        phone_number_id: Optional[str],
    ) -> OnboardingResult:
        now = datetime.now(timezone.utc)

        async with self._uow_factory() as uow:
            onboarding = await self._get_onboarding(uow, tracking_code)
            if onboarding is None:
                raise OnboardingNotFoundError(tracking_code)
            organization_id = onboarding.organization_id

            if onboarding.is_expired(now):
                await uow.onboardings.mark_expired(onboarding.id)
                await uow.commit()
                await self._cache.invalidate_onboarding(tracking_code)
                await self._audit_log.onboarding_expired(organization_id, tracking_code)
                self._log("onboarding_expired", logging.WARNING, tracking_code=tracking_code)
                return OnboardingResult(outcome=OUTCOME_EXPIRED, organization_id=organization_id)

            if event_type == WebhookEventType.PARTNER_ADDED:
                connection = await uow.connections.upsert_active(
                    organization_id, waba_id, owner_business_id, phone_number_id, now
                )
                completed = await uow.onboardings.mark_completed(
                    onboarding.id, waba_id, owner_business_id, phone_number_id, now
                )
                await uow.commit()
                await self._cache.cache_connection(connection)
                await self._cache.cache_onboarding(completed)
                await self._audit_log.onboarding_completed(
                    organization_id, tracking_code, connection.id, waba_id
                )
                self._log("connection_added", connection_id=connection.id, organization_id=organization_id)
                return OnboardingResult(
                    outcome=OUTCOME_CONNECTED,
                    connection_id=connection.id,
                    organization_id=organization_id,
                )

            connection = await uow.connections.get(organization_id, waba_id)
            if connection is None:
                self._log(
                    "connection_not_found",
                    logging.WARNING,
                    organization_id=organization_id,
                    waba_id=waba_id,
                )
                return OnboardingResult(
                    outcome=OUTCOME_CONNECTION_NOT_FOUND, organization_id=organization_id
                )
            return await self._transition(uow, connection, event_type, now)

    async def _apply_coexistence(
        self, event_type: WebhookEventType, waba_id: str, owner_business_id: str
    ) -> Optional[OnboardingResult]:
        now = datetime.now(timezone.utc)

        async with self._uow_factory() as uow:
            connections = await uow.connections.find_by_owner_business_id(owner_business_id)
            if not connections:
                return None
            if len(connections) > 1:
                raise AmbiguousConnectionError(owner_business_id, [c.id for c in connections])

            connection = connections[0]
            if event_type == WebhookEventType.PARTNER_ADDED:
                updated = await uow.connections.activate(connection.id, connected_at=now, waba_id=waba_id)
                await uow.commit()
                await self._cache.cache_connection(updated)
                await self._audit_log.connection_added(updated.organization_id, updated.id, waba_id)
                self._log("coexistence_connection_added", connection_id=updated.id)
                return OnboardingResult(
                    outcome=OUTCOME_CONNECTED,
                    connection_id=updated.id,
                    organization_id=updated.organization_id,
                )
            return await self._transition(uow, connection, event_type, now)

    async def _transition(
        self,
        uow: UnitOfWork,
        connection: Connection,
        event_type: WebhookEventType,
        now: datetime,
    ) -> OnboardingResult:
        """Apply PARTNER_REMOVED or PARTNER_REINSTATED to an existing connection and commit."""
        if event_type == WebhookEventType.PARTNER_REMOVED:
            duration_ms = connection.connected_duration_ms(now)
            updated = await uow.connections.deactivate(connection.id, now)
            await uow.commit()
            await self._cache.invalidate_connection(updated.organization_id, updated.waba_id)
            await self._audit_log.connection_removed(
                updated.organization_id, updated.id, updated.waba_id, duration_ms
            )
            self._log("connection_removed", connection_id=updated.id, connected_duration_ms=duration_ms)
            outcome = OUTCOME_DISCONNECTED
        else:
            updated = await uow.connections.activate(connection.id)
            await uow.commit()
            await self._cache.cache_connection(updated)
            await self._audit_log.connection_reinstated(
                updated.organization_id, updated.id, updated.waba_id
            )
            self._log("connection_reinstated", connection_id=updated.id)
            outcome = OUTCOME_REINSTATED

        return OnboardingResult(
            outcome=outcome,
            connection_id=updated.id,
            organization_id=updated.organization_id,
        )
