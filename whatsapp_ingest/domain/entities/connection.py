"""WhatsApp connection and onboarding session entities."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ConnectionStatus(str, Enum):
    """Connection lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class OnboardingStatus(str, Enum):
    """Onboarding session status."""

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Connection:
    """Provider-side account (WABA) link for an organization."""

    id: str
    organization_id: str
    waba_id: str
    status: ConnectionStatus
    owner_business_id: Optional[str] = None
    phone_number_id: Optional[str] = None
    connected_at: Optional[datetime] = None
    disconnected_at: Optional[datetime] = None

    def connected_duration_ms(self, now: datetime) -> Optional[int]:
        """Milliseconds since the connection was established, if known."""
        if self.connected_at is None:
            return None
        return int((now - self.connected_at).total_seconds() * 1000)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for caching."""
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "waba_id": self.waba_id,
            "status": self.status.value,
            "owner_business_id": self.owner_business_id,
            "phone_number_id": self.phone_number_id,
            "connected_at": _isoformat(self.connected_at),
            "disconnected_at": _isoformat(self.disconnected_at),
        }


@dataclass
class Onboarding:
    """Short-lived onboarding session correlated through a tracking code."""

    id: str
    tracking_code: str
    organization_id: str
    expires_at: datetime
    status: OnboardingStatus
    waba_id: Optional[str] = None
    owner_business_id: Optional[str] = None
    phone_number_id: Optional[str] = None
    completed_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        """Whether the tracking code can no longer be redeemed."""
        return self.expires_at < now

    def to_dict(self) -> dict[str, Any]:
        """Serialize for caching."""
        return {
            "id": self.id,
            "tracking_code": self.tracking_code,
            "organization_id": self.organization_id,
            "expires_at": _isoformat(self.expires_at),
            "status": self.status.value,
            "waba_id": self.waba_id,
            "owner_business_id": self.owner_business_id,
            "phone_number_id": self.phone_number_id,
            "completed_at": _isoformat(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Onboarding":
        """Deserialize a cached snapshot."""
        return cls(
            id=data["id"],
            tracking_code=data["tracking_code"],
            organization_id=data["organization_id"],
            expires_at=_parse_datetime(data["expires_at"]),
            status=OnboardingStatus(data["status"]),
            waba_id=data.get("waba_id"),
            owner_business_id=data.get("owner_business_id"),
            phone_number_id=data.get("phone_number_id"),
            completed_at=_parse_datetime(data.get("completed_at")),
        )
