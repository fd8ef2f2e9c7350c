"""Meta webhook signature helpers."""

import hashlib
import hmac
from typing import Optional

from fastapi import HTTPException, status

from whatsapp_ingest.infrastructure.config.settings import settings

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_meta_signature(app_secret: str, raw_body: bytes) -> str:
    """
    Compute the ``X-Hub-Signature-256`` header value for a body.

    Args:
        app_secret: Meta app secret
        raw_body: Exact request body bytes

    Returns:
        Header value in the form ``sha256=<hex digest>``
    """
    digest = hmac.new(app_secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def validate_meta_signature(raw_body: bytes, signature: Optional[str]) -> Optional[bool]:
    """
    Validate a Meta webhook signature.

    Args:
        raw_body: Exact request body bytes
        signature: Value of the X-Hub-Signature-256 header, if sent

    Returns:
        True if signature is valid, False otherwise, None when validation is disabled

    Raises:
        HTTPException: 500 if validation is enabled but no app secret is configured,
            401 if the signature header is missing
    """
    if not settings.meta_validate_signature:
        return None

    if not settings.meta_app_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Meta signature validation enabled but META_APP_SECRET not configured",
        )

    if not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {SIGNATURE_HEADER} header",
        )

    if not signature.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_meta_signature(settings.meta_app_secret, raw_body)
    return hmac.compare_digest(expected, signature)
