"""Standard error codes for checkout, webhook and order operations.

Every failure surfaced to a caller carries one of these codes so the
frontend can distinguish "sold out" from "payment service error" without
parsing messages.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Validation errors (ERR_001-ERR_003)
    MISSING_FIELDS = "ERR_001"
    INVALID_ID = "ERR_002"
    INVALID_REQUEST = "ERR_003"

    # Not-found / state errors (ERR_004-ERR_009)
    ENTITY_NOT_FOUND = "ERR_004"
    REGISTRATION_CLOSED = "ERR_005"
    SOLD_OUT = "ERR_006"
    ORDER_NOT_FOUND = "ERR_007"
    PAYMENT_NOT_COMPLETED = "ERR_008"
    INVALID_SESSION = "ERR_009"

    # Stripe/Payment error codes (ERR_STRIPE_001-ERR_STRIPE_004)
    INVALID_WEBHOOK_SIGNATURE = "ERR_STRIPE_001"
    PAYMENT_SERVICE_ERROR = "ERR_STRIPE_002"
    PAYMENT_SERVICE_UNAVAILABLE = "ERR_STRIPE_003"
    WEBHOOK_PROCESSING_FAILED = "ERR_STRIPE_004"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.MISSING_FIELDS: "Missing required fields: entityId, email, name",
    ErrorCode.INVALID_ID: "Invalid entity id",
    ErrorCode.INVALID_REQUEST: "Invalid request data",
    ErrorCode.ENTITY_NOT_FOUND: "The requested item was not found",
    ErrorCode.REGISTRATION_CLOSED: "Registration is closed for this item",
    ErrorCode.SOLD_OUT: "This event is sold out",
    ErrorCode.ORDER_NOT_FOUND: "Order not found",
    ErrorCode.PAYMENT_NOT_COMPLETED: "Payment not completed",
    ErrorCode.INVALID_SESSION: "Invalid checkout session",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.PAYMENT_SERVICE_ERROR: "Payment service error",
    ErrorCode.PAYMENT_SERVICE_UNAVAILABLE: "Payment service not configured",
    ErrorCode.WEBHOOK_PROCESSING_FAILED: "Webhook processing failed",
}

# Recovery suggestions shown to the caller
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.MISSING_FIELDS: "Provide entityId, email and name",
    ErrorCode.INVALID_ID: "Use the numeric id of the event or product",
    ErrorCode.INVALID_REQUEST: "Check the request fields and try again",
    ErrorCode.ENTITY_NOT_FOUND: "Browse the catalog for available items",
    ErrorCode.REGISTRATION_CLOSED: "Choose another event or product",
    ErrorCode.SOLD_OUT: "Choose another event",
    ErrorCode.ORDER_NOT_FOUND: "Verify the order id",
    ErrorCode.PAYMENT_NOT_COMPLETED: "Complete the payment or start a new checkout",
    ErrorCode.INVALID_SESSION: "Start a new checkout",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.PAYMENT_SERVICE_ERROR: "Try again in a few minutes",
    ErrorCode.PAYMENT_SERVICE_UNAVAILABLE: "Configure Stripe credentials",
    ErrorCode.WEBHOOK_PROCESSING_FAILED: "Stripe will retry the delivery",
}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class CheckoutError(Exception):
    """Exception raised by checkout, webhook and order operations.

    Converted to an ErrorResponse by the API exception handlers.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)
