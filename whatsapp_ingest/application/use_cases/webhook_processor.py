"""Webhook event router."""

import logging
from typing import Any, Awaitable, Callable, Optional

from whatsapp_ingest.application.use_cases.handle_history_use_case import HandleHistoryUseCase
from whatsapp_ingest.application.use_cases.handle_message_use_case import HandleMessageUseCase
from whatsapp_ingest.application.use_cases.handle_onboarding_use_case import (
    HandleOnboardingUseCase,
)
from whatsapp_ingest.application.use_cases.handle_state_sync_use_case import (
    HandleStateSyncUseCase,
)
from whatsapp_ingest.domain.value_objects.webhook_event_type import (
    WebhookEventType,
    extract_event_token,
)

Handler = Callable[[dict[str, Any], WebhookEventType], Awaitable[Any]]


class WebhookProcessor:
    """
    Classify a webhook payload and dispatch it to exactly one handler.

    Unknown event tokens and payloads without a first change are logged and dropped.
    Handler exceptions propagate unchanged so the delivery layer can retry.
    """

    def __init__(
        self,
        message_handler: HandleMessageUseCase,
        history_handler: HandleHistoryUseCase,
        state_sync_handler: HandleStateSyncUseCase,
        onboarding_handler: HandleOnboardingUseCase,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize webhook processor.

        Args:
            message_handler: Live message and echo handler
            history_handler: History import handler
            state_sync_handler: Contact-directory sync handler
            onboarding_handler: Account update handler
            logger: Optional structured logger function (component, event, level, **kwargs)
        """
        self._message_handler = message_handler
        self._history_handler = history_handler
        self._state_sync_handler = state_sync_handler
        self._onboarding_handler = onboarding_handler
        self._logger = logger

        self._handlers: dict[WebhookEventType, Handler] = {
            WebhookEventType.PARTNER_ADDED: self._handle_account_update,
            WebhookEventType.PARTNER_REMOVED: self._handle_account_update,
            WebhookEventType.PARTNER_REINSTATED: self._handle_account_update,
            WebhookEventType.MESSAGES: self._handle_messages,
            WebhookEventType.MESSAGE_ECHOES: self._handle_messages,
            WebhookEventType.STATUSES: self._handle_pass_through,
            WebhookEventType.TEMPLATE_STATUS_UPDATE: self._handle_pass_through,
            WebhookEventType.HISTORY: self._handle_history,
            WebhookEventType.STATE_SYNC: self._handle_state_sync,
        }

    def _log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self._logger:
            self._logger("router", event, level, **kwargs)

    async def process(self, payload: dict[str, Any]) -> Optional[WebhookEventType]:
        """
        Route a webhook payload.

        Args:
            payload: Decoded webhook body

        Returns:
            The dispatched event type, or None when the payload was dropped
        """
        token = extract_event_token(payload)
        if token is None:
            self._log("no_event_type", logging.WARNING)
            return None

        event_type = WebhookEventType.parse(token)
        handler = self._handlers.get(event_type) if event_type else None
        if handler is None:
            self._log("unhandled_event", logging.WARNING, event_type=token)
            return None

        self._log("dispatch", event_type=event_type.value, handler=handler.__name__.lstrip("_"))
        await handler(payload, event_type)
        return event_type

    async def _handle_account_update(self, payload: dict[str, Any], event_type: WebhookEventType) -> Any:
        return await self._onboarding_handler.execute(payload, event_type)

    async def _handle_messages(self, payload: dict[str, Any], event_type: WebhookEventType) -> Any:
        return await self._message_handler.execute(
            payload, echo_only=event_type == WebhookEventType.MESSAGE_ECHOES
        )

    async def _handle_history(self, payload: dict[str, Any], event_type: WebhookEventType) -> Any:
        return await self._history_handler.execute(payload)

    async def _handle_state_sync(self, payload: dict[str, Any], event_type: WebhookEventType) -> Any:
        return await self._state_sync_handler.execute(payload)

    async def _handle_pass_through(self, payload: dict[str, Any], event_type: WebhookEventType) -> None:
        # delivery receipts and template approvals carry no business logic here
        self._log("pass_through", event_type=event_type.value)
