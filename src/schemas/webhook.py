"""Webhook acknowledgment schemas."""

from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    """Acknowledgment returned to the sales platform."""

    success: bool | None = Field(default=None, description="True when a purchase was relayed")
    transaction: str | None = Field(default=None, description="Relayed transaction id")
    message: str | None = Field(default=None, description="Reason the event was not relayed")
