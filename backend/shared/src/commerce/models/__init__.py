"""Pydantic models for commerce data entities."""

from .catalog import Event, Product
from .enums import (
    OrderStatus,
    OrderType,
    TransitionOutcome,
    WebhookProcessingResult,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    CheckoutError,
    ErrorCode,
    ErrorResponse,
)
from .order import CheckoutConfirmation, CheckoutResult, Order, ReconciliationReport
from .stripe_webhook import StripeWebhookEvent

__all__ = [
    # Enums
    "OrderStatus",
    "OrderType",
    "TransitionOutcome",
    "WebhookProcessingResult",
    # Catalog
    "Event",
    "Product",
    # Orders
    "Order",
    "CheckoutResult",
    "CheckoutConfirmation",
    "ReconciliationReport",
    # Errors
    "CheckoutError",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    # Stripe
    "StripeWebhookEvent",
]
