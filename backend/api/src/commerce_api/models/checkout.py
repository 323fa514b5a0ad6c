"""Checkout, webhook and order API models.

Request bodies accept camelCase or snake_case keys; responses are
serialized in camelCase.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, validate_email
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from commerce.models import (
    CheckoutConfirmation,
    CheckoutResult,
    Order,
    OrderStatus,
    OrderType,
    WebhookProcessingResult,
)

CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutRequest(BaseModel):
    """Request body for starting an event or product checkout."""

    model_config = CAMEL_CONFIG

    entity_id: int | str = Field(..., description="Event or product ID", examples=[42])
    email: str = Field(..., min_length=1, description="Customer email")
    name: str = Field(..., min_length=1, description="Customer name")

    @field_validator("entity_id", "email", "name", mode="before")
    @classmethod
    def _require_value(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("missing", "Field required")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        _, email = validate_email(value)
        return email


class CheckoutResponse(BaseModel):
    """Checkout response.

    Paid checkouts carry ``checkoutUrl``; free ones are already completed.
    """

    model_config = CAMEL_CONFIG

    success: bool = True
    is_free: bool
    status: OrderStatus
    order_id: str
    registration_id: str
    checkout_url: str | None = None
    session_id: str | None = None
    ticket_code: str | None = None

    @classmethod
    def from_result(cls, result: CheckoutResult) -> "CheckoutResponse":
        # registrationId names the created record for purchases too
        return cls(
            success=result.success,
            is_free=result.is_free,
            status=result.status,
            order_id=result.order_id,
            registration_id=result.order_id,
            checkout_url=result.checkout_url,
            session_id=result.session_id,
            ticket_code=result.ticket_code,
        )


class WebhookResponse(BaseModel):
    """Standard webhook response."""

    model_config = CAMEL_CONFIG

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: WebhookProcessingResult
    message: str | None = None


class ConfirmationResponse(BaseModel):
    """Verified checkout details for the success page API."""

    model_config = CAMEL_CONFIG

    success: bool = True
    session_id: str
    order_id: str
    order_type: OrderType
    entity_id: int
    entity_title: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    amount_total: int
    currency: str
    ticket_code: str | None = None

    @classmethod
    def from_confirmation(cls, confirmation: CheckoutConfirmation) -> "ConfirmationResponse":
        return cls(**confirmation.model_dump())


class OrderStatusResponse(BaseModel):
    """Public view of an order record."""

    model_config = CAMEL_CONFIG

    order_id: str
    order_type: OrderType
    entity_id: int
    status: OrderStatus
    amount_cents: int
    currency: str
    ticket_code: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderStatusResponse":
        return cls(
            order_id=order.order_id,
            order_type=order.order_type,
            entity_id=order.entity_id,
            status=order.status,
            amount_cents=order.amount_cents,
            currency=order.currency,
            ticket_code=order.ticket_code,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
