"""Webhook processing errors.

Errors raised from a handler propagate unchanged through the webhook processor so the
delivery layer can retry or dead-letter the payload.
"""


class WebhookProcessingError(Exception):
    """Base class for fatal webhook processing errors."""


class InvalidPayloadError(WebhookProcessingError):
    """A required identifying field is missing from the payload."""


class ConfigNotFoundError(WebhookProcessingError):
    """No WhatsApp config is registered for the payload's phone number id."""

    def __init__(self, phone_number_id: str) -> None:
        """Initialize with the unknown phone number id."""
        super().__init__(f"WhatsApp config not found for phone_number_id: {phone_number_id}")
        self.phone_number_id = phone_number_id


class OnboardingNotFoundError(WebhookProcessingError):
    """The tracking code of an account update does not match any onboarding session."""

    def __init__(self, tracking_code: str) -> None:
        """Initialize with the unknown tracking code."""
        super().__init__(f"Onboarding not found: {tracking_code}")
        self.tracking_code = tracking_code


class AmbiguousConnectionError(WebhookProcessingError):
    """Several connections share the owner business id of a coexistence account update."""

    def __init__(self, owner_business_id: str, connection_ids: list[str]) -> None:
        """Initialize with the owner business id and the matching connections."""
        super().__init__(
            f"{len(connection_ids)} connections share owner_business_id {owner_business_id}: "
            f"{', '.join(connection_ids)}"
        )
        self.owner_business_id = owner_business_id
        self.connection_ids = connection_ids


class DuplicateMessageError(Exception):
    """A message with the same wamid was committed concurrently."""

    def __init__(self, wamid: str) -> None:
        """Initialize with the duplicated provider message id."""
        super().__init__(f"Message already processed: {wamid}")
        self.wamid = wamid


class MalformedMessageError(ValueError):
    """A single message entry cannot be interpreted."""
