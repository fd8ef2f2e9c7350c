"""Audit log port."""

from abc import ABC, abstractmethod
from typing import Optional

from whatsapp_ingest.application.dtos.notifications import AuditEntry

ONBOARDING_COMPLETED = "ONBOARDING_COMPLETED"
ONBOARDING_EXPIRED = "ONBOARDING_EXPIRED"
CONNECTION_ADDED = "CONNECTION_ADDED"
CONNECTION_REMOVED = "CONNECTION_REMOVED"
CONNECTION_REINSTATED = "CONNECTION_REINSTATED"


class AuditLog(ABC):
    """Port interface for the connection-lifecycle audit sink."""

    @abstractmethod
    async def log(self, entry: AuditEntry) -> None:
        """
        Record an audit entry. Implementations must not raise.

        Args:
            entry: Structured audit event
        """
        pass

    async def onboarding_completed(
        self, organization_id: str, tracking_code: str, connection_id: str, waba_id: str
    ) -> None:
        await self.log(
            AuditEntry(
                organization_id=organization_id,
                action=ONBOARDING_COMPLETED,
                description=f"WhatsApp onboarding completed for WABA {waba_id}",
                tracking_code=tracking_code,
                connection_id=connection_id,
                metadata={"waba_id": waba_id},
            )
        )

    async def onboarding_expired(self, organization_id: str, tracking_code: str) -> None:
        await self.log(
            AuditEntry(
                organization_id=organization_id,
                action=ONBOARDING_EXPIRED,
                description="Onboarding tracking code expired before completion",
                tracking_code=tracking_code,
            )
        )

    async def connection_added(self, organization_id: str, connection_id: str, waba_id: str) -> None:
        await self.log(
            AuditEntry(
                organization_id=organization_id,
                action=CONNECTION_ADDED,
                description=f"WhatsApp connection added for WABA {waba_id}",
                connection_id=connection_id,
                metadata={"waba_id": waba_id},
            )
        )

    async def connection_removed(
        self,
        organization_id: str,
        connection_id: str,
        waba_id: str,
        connected_duration_ms: Optional[int],
    ) -> None:
        """
        Record a disconnection together with how long the connection lasted.

        Args:
            organization_id: Organization identifier
            connection_id: Connection identifier
            waba_id: Provider account id
            connected_duration_ms: Time since connection, None when unknown
        """
        metadata = {"waba_id": waba_id}
        if connected_duration_ms is not None:
            metadata["connected_duration_minutes"] = connected_duration_ms // 60000
        await self.log(
            AuditEntry(
                organization_id=organization_id,
                action=CONNECTION_REMOVED,
                description=f"WhatsApp connection removed for WABA {waba_id}",
                connection_id=connection_id,
                metadata=metadata,
            )
        )

    async def connection_reinstated(
        self, organization_id: str, connection_id: str, waba_id: str
    ) -> None:
        await self.log(
            AuditEntry(
                organization_id=organization_id,
                action=CONNECTION_REINSTATED,
                description=f"WhatsApp connection reinstated for WABA {waba_id}",
                connection_id=connection_id,
                metadata={"waba_id": waba_id},
            )
        )
