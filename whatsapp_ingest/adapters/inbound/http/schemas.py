"""HTTP adapter schemas for the webhook endpoint."""

from pydantic import BaseModel, ConfigDict


class WebhookAck(BaseModel):
    """Acknowledgement returned for an accepted delivery."""

    received: bool = True

    model_config = ConfigDict(json_schema_extra={"example": {"received": True}})


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str

    model_config = ConfigDict(json_schema_extra={"example": {"status": "ok"}})
