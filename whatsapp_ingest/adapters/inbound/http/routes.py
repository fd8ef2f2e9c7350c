"""HTTP routes."""

import hmac
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from whatsapp_ingest.adapters.inbound.http.meta_signature import (
    SIGNATURE_HEADER,
    validate_meta_signature,
)
from whatsapp_ingest.adapters.inbound.http.schemas import HealthResponse, WebhookAck
from whatsapp_ingest.domain.value_objects.webhook_event_type import (
    extract_event_token,
    first_change,
)
from whatsapp_ingest.infrastructure.config.settings import settings
from whatsapp_ingest.infrastructure.logging.logger import log_webhook
from whatsapp_ingest.infrastructure.wiring.dependencies import (
    create_webhook_log_repository,
    create_webhook_processor,
)

router = APIRouter()

# Create processor instance (wired with dependencies)
_webhook_processor = create_webhook_processor()
_webhook_log = create_webhook_log_repository()


def _phone_number_id(payload: dict[str, Any]) -> Optional[str]:
    change = first_change(payload)
    value = change.get("value") if change else None
    if not isinstance(value, dict):
        return None
    return (value.get("metadata") or {}).get("phone_number_id")


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for liveness/readiness.

    Returns:
        Health status
    """
    return HealthResponse(status="ok")


@router.get("/webhooks/whatsapp", response_class=PlainTextResponse)
async def verify_subscription(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
) -> PlainTextResponse:
    """
    Answer the webhook subscription handshake.

    Args:
        hub_mode: Must be "subscribe"
        hub_verify_token: Token configured on the provider side
        hub_challenge: Value to echo back

    Returns:
        The challenge as plain text

    Raises:
        HTTPException: 403 if the mode or token does not match
    """
    expected = settings.meta_webhook_verify_token
    if (
        hub_mode == "subscribe"
        and expected
        and hub_verify_token
        and hmac.compare_digest(hub_verify_token, expected)
    ):
        log_webhook("http", "subscription_verified")
        return PlainTextResponse(hub_challenge or "")

    log_webhook("http", "subscription_rejected", logging.WARNING, mode=hub_mode)
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Webhook verification failed",
    )


@router.post("/webhooks/whatsapp", status_code=status.HTTP_200_OK, response_model=WebhookAck)
async def receive_webhook(request: Request) -> WebhookAck:
    """
    Receive a WhatsApp Business webhook delivery.

    Any processing failure is answered with 500 so the provider redelivers.

    Args:
        request: FastAPI request object (raw body is needed for signature validation)

    Returns:
        Acknowledgement of the delivery
    """
    raw_body = await request.body()

    signature_valid = validate_meta_signature(raw_body, request.headers.get(SIGNATURE_HEADER))
    if signature_valid is False:
        log_webhook("http", "invalid_signature", logging.WARNING)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook body is not valid JSON",
        ) from err
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook body must be a JSON object",
        )

    event_token = extract_event_token(payload)
    phone_number_id = _phone_number_id(payload)
    log_webhook(
        "http",
        "webhook_received",
        event_type=event_token,
        phone_number_id=phone_number_id,
        body_length=len(raw_body),
    )

    await _webhook_log.record(payload, event_token, phone_number_id, signature_valid)

    try:
        await _webhook_processor.process(payload)
    except Exception as err:
        log_webhook(
            "http",
            "processing_failed",
            logging.ERROR,
            event_type=event_token,
            error_type=type(err).__name__,
            error=str(err),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from err

    return WebhookAck(received=True)
