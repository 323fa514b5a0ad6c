"""Checkout endpoints for event registrations and product purchases.

Provides REST endpoints for:
- Starting an event registration checkout
- Starting a product purchase checkout

Neither endpoint requires authentication; the customer supplies an email
and name. Priced items return a Stripe Checkout URL to redirect to; free
items are completed immediately.
"""

from fastapi import APIRouter, Depends

from commerce.services.checkout_service import CheckoutService
from commerce_api.dependencies import get_checkout_service
from commerce_api.models.checkout import CheckoutRequest, CheckoutResponse
from commerce_api.models.common import ErrorResponse, ValidationErrorResponse

router = APIRouter(prefix="/checkout", tags=["checkout"])

ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"description": "Invalid request, closed or sold out", "model": ValidationErrorResponse},
    404: {"description": "Event or product not found", "model": ErrorResponse},
    502: {"description": "Stripe API error", "model": ErrorResponse},
    503: {"description": "Stripe not configured", "model": ErrorResponse},
}


@router.post(
    "/events",
    summary="Start event registration checkout",
    description="""
Create a registration for an event.

- Free events are registered immediately and receive a ticket code.
- Paid events get a pending registration and a Stripe Checkout URL.
- Capacity is reserved atomically; a full event returns SOLD_OUT.
""",
    response_model=CheckoutResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def checkout_event(
    request: CheckoutRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Start a checkout for an event registration."""
    result = checkout.checkout_event(request.entity_id, request.email, request.name)
    return CheckoutResponse.from_result(result)


@router.post(
    "/products",
    summary="Start product purchase checkout",
    description="""
Create a purchase order for a merchandise product and return a Stripe
Checkout URL. Zero-priced products are completed immediately.
""",
    response_model=CheckoutResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def checkout_product(
    request: CheckoutRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Start a checkout for a product purchase."""
    result = checkout.checkout_product(request.entity_id, request.email, request.name)
    return CheckoutResponse.from_result(result)
