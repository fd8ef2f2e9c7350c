"""Ticket expiry and message-window policy."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from whatsapp_ingest.domain.entities.ticket import Ticket, TicketOrigin

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class NewTicketWindow:
    """Window fields for a ticket about to be created."""

    window_expires_at: Optional[datetime]
    window_open: bool
    originated_from: TicketOrigin


@dataclass(frozen=True)
class TicketWindowPolicy:
    """Decides ticket expiry and the inactivity window of new or renewed tickets."""

    window_hours: int = 24
    default_expiration_days: int = 30

    def __post_init__(self) -> None:
        """Validate policy parameters."""
        if self.window_hours <= 0:
            raise ValueError("Message window must be positive")
        if self.default_expiration_days <= 0:
            raise ValueError("Ticket expiration must be positive")

    def is_expired(
        self,
        ticket: Ticket,
        event_at: datetime,
        expiration_days: Optional[int] = None,
    ) -> bool:
        """
        Check whether an open ticket outlived the organization's expiration window.

        Args:
            ticket: Open ticket
            event_at: Timestamp of the event being processed
            expiration_days: Organization override (falls back to the policy default)

        Returns:
            True if more than ``expiration_days`` elapsed since the ticket was created
        """
        days = expiration_days or self.default_expiration_days
        elapsed_days = (event_at - ticket.created_at).total_seconds() / SECONDS_PER_DAY
        return elapsed_days > days

    def window_for_new_ticket(self, event_at: datetime, was_history_lead: bool) -> NewTicketWindow:
        """
        Compute the window of a new ticket.

        History-imported leads never get an inactivity window.
        """
        if was_history_lead:
            return NewTicketWindow(
                window_expires_at=None,
                window_open=False,
                originated_from=TicketOrigin.HISTORY_LEAD,
            )
        return NewTicketWindow(
            window_expires_at=self.renewed_window(event_at),
            window_open=True,
            originated_from=TicketOrigin.NEW_CONTACT,
        )

    def renewed_window(self, event_at: datetime) -> datetime:
        """Window expiry after an inbound message."""
        return event_at + timedelta(hours=self.window_hours)
