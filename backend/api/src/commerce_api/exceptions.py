"""FastAPI exception handlers for converting CheckoutError to HTTP responses.

This module provides exception handlers that convert domain errors
(CheckoutError) to HTTP responses with the ErrorResponse JSON structure.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: Validation errors, closed or sold-out items, bad signatures
- 402 Payment Required: Checkout session not paid
- 404 Not Found: Unknown event, product or order
- 500 Internal Server Error: Webhook storage failures (Stripe retries)
- 502 Bad Gateway: Stripe API errors
- 503 Service Unavailable: Stripe not configured

Usage:
    from commerce_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from commerce.models.errors import CheckoutError, ErrorCode
from commerce_api.models.common import format_validation_errors

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Validation and business rule errors -> 400 Bad Request
    ErrorCode.MISSING_FIELDS: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_ID: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REQUEST: HTTP_400_BAD_REQUEST,
    ErrorCode.REGISTRATION_CLOSED: HTTP_400_BAD_REQUEST,
    ErrorCode.SOLD_OUT: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SESSION: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    # Not found errors -> 404 Not Found
    ErrorCode.ENTITY_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ORDER_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Payment not completed -> 402 Payment Required
    ErrorCode.PAYMENT_NOT_COMPLETED: HTTP_402_PAYMENT_REQUIRED,
    # Stripe errors
    ErrorCode.PAYMENT_SERVICE_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.PAYMENT_SERVICE_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.WEBHOOK_PROCESSING_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
}

MISSING_VALUE_ERROR_TYPES = frozenset({"missing", "string_too_short"})


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    """Handle CheckoutError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The CheckoutError exception

    Returns:
        JSONResponse with error details and appropriate status code.
    """
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code.value)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with a 400 response.

    Missing or blank fields map to MISSING_FIELDS; anything else to
    INVALID_REQUEST.
    """
    errors = list(exc.errors())
    if any(error.get("type") in MISSING_VALUE_ERROR_TYPES for error in errors):
        code = ErrorCode.MISSING_FIELDS
    else:
        code = ErrorCode.INVALID_REQUEST

    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=format_validation_errors(errors, code).model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The uncaught exception

    Returns:
        JSONResponse with 500 status and generic error message.
    """
    logger.exception("Unhandled exception: %s", exc)

    # Don't expose internal details
    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact support",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(CheckoutError, checkout_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
