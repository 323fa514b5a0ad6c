"""Order record model and checkout results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import OrderStatus, OrderType


class Order(BaseModel):
    """Local record of a registration or purchase intent.

    Amounts are stored in minor currency units. The record is created by the
    checkout flow and only ever moves pending -> completed or
    pending -> expired.
    """

    model_config = ConfigDict(strict=True)

    order_id: str = Field(..., description="Unique order ID", examples=["REG-3F9A0C21B7D4"])
    order_type: OrderType = Field(..., description="Linked entity kind")
    entity_id: int = Field(..., gt=0, description="Event or product ID")
    customer_email: str = Field(..., description="Customer email")
    customer_name: str = Field(..., description="Customer name")
    amount_cents: int = Field(..., ge=0, description="Amount in cents")
    currency: str = Field(default="usd", description="Currency code")
    status: OrderStatus = Field(..., description="Lifecycle status")
    stripe_session_id: str | None = Field(
        default=None,
        description="Stripe Checkout Session ID (cs_xxx)",
        examples=["cs_test_abc123def456"],
    )
    ticket_code: str | None = Field(default=None, description="Ticket code for registrations")
    last_error: str | None = Field(default=None, description="Last provider failure")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp")
    expired_at: datetime | None = Field(default=None, description="Expiry timestamp")


class CheckoutResult(BaseModel):
    """Result of initiating a checkout.

    Free orders are completed immediately and carry no checkout URL.
    Paid orders stay pending until the webhook confirms them.
    """

    model_config = ConfigDict(strict=True)

    success: bool = True
    is_free: bool
    order_id: str
    status: OrderStatus
    checkout_url: str | None = Field(
        default=None,
        description="Stripe Checkout URL for payment redirect",
        examples=["https://checkout.stripe.com/c/pay/cs_test_abc123"],
    )
    session_id: str | None = None
    ticket_code: str | None = None


class CheckoutConfirmation(BaseModel):
    """Confirmation details read back from a paid checkout session.

    Built from the provider's session and metadata, not from the local
    order record, which may not have been updated yet.
    """

    model_config = ConfigDict(strict=True)

    session_id: str
    order_id: str
    order_type: OrderType
    entity_id: int
    entity_title: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    amount_total: int = Field(..., ge=0, description="Amount paid in cents")
    currency: str = "usd"
    ticket_code: str | None = None


class ReconciliationReport(BaseModel):
    """Counts produced by one reconciliation sweep."""

    scanned: int = 0
    completed: int = 0
    expired: int = 0
    still_open: int = 0
    errors: int = 0
