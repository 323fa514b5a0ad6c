"""Stripe webhook event model for idempotency and auditing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import WebhookProcessingResult


class StripeWebhookEvent(BaseModel):
    """Log of a received Stripe webhook event.

    Used for:
    - Idempotency: skip events that were already processed
    - Auditing: track all webhook deliveries
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["checkout.session.completed", "checkout.session.expired"],
    )
    processed_at: datetime = Field(..., description="When the event was processed")
    payload_hash: str = Field(..., description="SHA-256 hash of payload")
    order_id: str | None = Field(default=None, description="Order ID from metadata")
    processing_result: WebhookProcessingResult = Field(
        default=WebhookProcessingResult.SUCCESS,
        description="Result of processing",
    )
    error_message: str | None = Field(default=None, description="Error or skip reason")

    def to_item(self) -> dict[str, str]:
        """Convert to a DynamoDB item, dropping empty optional fields."""
        item = {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "processed_at": self.processed_at.isoformat(),
            "payload_hash": self.payload_hash,
            "processing_result": self.processing_result.value,
        }
        if self.order_id:
            item["order_id"] = self.order_id
        if self.error_message:
            item["error_message"] = self.error_message
        return item
