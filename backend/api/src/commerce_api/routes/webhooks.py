"""Webhook endpoints for external service integrations.

Provides endpoints for:
- Stripe webhook events (checkout.session.completed, checkout.session.expired,
  payment_intent.payment_failed)

These endpoints do NOT require authentication as they receive signed
payloads from Stripe.
"""

from fastapi import APIRouter, Depends, Request

from commerce.models.errors import CheckoutError, ErrorCode
from commerce.services.stripe_service import (
    StripeNotConfiguredError,
    StripeService,
    WebhookSignatureError,
    get_stripe_service,
)
from commerce.services.webhook_handler import WebhookHandler
from commerce.utils.logging import get_logger
from commerce_api.dependencies import get_webhook_handler
from commerce_api.models.checkout import WebhookResponse
from commerce_api.models.common import ErrorResponse

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADER = "Stripe-Signature"


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed / async_payment_succeeded: completes the order
- checkout.session.expired: expires the order and frees event capacity
- payment_intent.payment_failed: logged only

**No authentication required** - signature is verified using the Stripe
webhook secret.

**Idempotent**: Duplicate events (same event id) return 200 with 'duplicate'.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event received and processed (or acknowledged)"},
        400: {"description": "Invalid signature or missing header", "model": ErrorResponse},
        500: {"description": "Storage failure; Stripe will retry", "model": ErrorResponse},
    },
)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Handle incoming Stripe webhook events.

    Verifies signature, checks for duplicates, and processes the event.
    """
    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        logger.warning("Webhook request missing %s header", SIGNATURE_HEADER)
        raise CheckoutError(
            ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            {"message": f"Missing {SIGNATURE_HEADER} header"},
        )

    # Raw body is needed for signature verification
    payload = await request.body()

    try:
        event = stripe_service.verify_webhook_signature(payload, signature)
    except WebhookSignatureError as e:
        raise CheckoutError(
            ErrorCode.INVALID_WEBHOOK_SIGNATURE, {"message": str(e)}
        ) from e
    except StripeNotConfiguredError as e:
        logger.error("Webhook secret unavailable: %s", e)
        raise CheckoutError(ErrorCode.PAYMENT_SERVICE_UNAVAILABLE) from e

    result, message = handler.handle_event(
        event, stripe_service.compute_payload_hash(payload)
    )

    return WebhookResponse(
        received=True,
        event_id=event["id"],
        event_type=event["type"],
        processing_result=result,
        message=message,
    )
