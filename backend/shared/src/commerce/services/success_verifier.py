"""Success-page verifier.

Confirms a checkout from the Stripe session itself when the customer is
redirected back, so the confirmation does not depend on the webhook
having arrived. A paid session is also written back to the order record
as a best-effort second path to completion.
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from commerce.models import (
    CheckoutConfirmation,
    CheckoutError,
    ErrorCode,
    OrderType,
    TransitionOutcome,
)

from .order_store import OrderStore
from .stripe_service import StripeNotConfiguredError, StripeService, StripeServiceError

logger = logging.getLogger(__name__)

SESSION_ID_PREFIX = "cs_"


class SuccessVerifier:
    """Verifies checkout sessions for the success page."""

    def __init__(self, stripe_service: StripeService, orders: OrderStore) -> None:
        self.stripe = stripe_service
        self.orders = orders

    def verify(self, session_id: str) -> CheckoutConfirmation:
        """Verify that a checkout session was paid.

        Args:
            session_id: Stripe Checkout Session ID from the redirect

        Returns:
            CheckoutConfirmation built from the session and its metadata

        Raises:
            CheckoutError: INVALID_SESSION for malformed, unknown or foreign
                sessions, PAYMENT_NOT_COMPLETED when unpaid, and
                PAYMENT_SERVICE_ERROR / PAYMENT_SERVICE_UNAVAILABLE when
                Stripe cannot be reached
        """
        if not session_id or not session_id.startswith(SESSION_ID_PREFIX):
            raise CheckoutError(ErrorCode.INVALID_SESSION)

        try:
            session = self.stripe.retrieve_checkout_session(session_id)
        except StripeNotConfiguredError as e:
            raise CheckoutError(ErrorCode.PAYMENT_SERVICE_UNAVAILABLE) from e
        except StripeServiceError as e:
            if e.stripe_error_code == "resource_missing":
                raise CheckoutError(ErrorCode.INVALID_SESSION) from e
            raise CheckoutError(ErrorCode.PAYMENT_SERVICE_ERROR) from e

        metadata = session["metadata"]
        order_id = metadata.get("order_id")
        try:
            order_type = OrderType(metadata.get("order_type"))
            entity_id = int(metadata.get("entity_id", ""))
        except ValueError:
            order_id = None
        if not order_id:
            logger.warning("Session %s carries no order metadata", session_id)
            raise CheckoutError(ErrorCode.INVALID_SESSION)

        if session["payment_status"] != "paid":
            raise CheckoutError(
                ErrorCode.PAYMENT_NOT_COMPLETED,
                {"payment_status": str(session["payment_status"])},
            )

        self._write_back(order_id, session_id)

        return CheckoutConfirmation(
            session_id=session_id,
            order_id=order_id,
            order_type=order_type,
            entity_id=entity_id,
            entity_title=metadata.get("entity_title"),
            customer_name=metadata.get("customer_name"),
            customer_email=session["customer_email"],
            amount_total=int(session["amount_total"]),
            currency=session["currency"],
            ticket_code=metadata.get("ticket_code"),
        )

    def _write_back(self, order_id: str, session_id: str) -> None:
        """Apply the pending -> completed transition; failures are only logged."""
        try:
            outcome = self.orders.mark_completed(order_id, session_id=session_id)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Could not write back completion for %s: %s", order_id, e)
            return
        if outcome == TransitionOutcome.APPLIED:
            logger.info("Order %s completed from success page", order_id)
        elif outcome in (TransitionOutcome.CONFLICT, TransitionOutcome.NOT_FOUND):
            logger.warning("Paid session %s for order %s: %s", session_id, order_id, outcome.value)
