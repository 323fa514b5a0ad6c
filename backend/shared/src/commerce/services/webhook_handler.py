"""Webhook handler for processing Stripe events.

Provides business logic for handling webhook events separate from
HTTP routing concerns. Events are processed idempotently: every delivery
is recorded in the webhook events table, and a delivery whose event ID
was already handled without error is acknowledged as a duplicate.
"""

import datetime as dt
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from commerce.models import (
    CheckoutError,
    ErrorCode,
    OrderType,
    StripeWebhookEvent,
    TransitionOutcome,
    WebhookProcessingResult,
)
from commerce.utils.logging import log_webhook_event

from .catalog_service import CatalogService
from .dynamodb import DynamoDBService
from .order_store import OrderStore

logger = logging.getLogger(__name__)

COMPLETED_EVENTS = frozenset(
    {
        "checkout.session.completed",
        "checkout.session.async_payment_succeeded",
    }
)
EXPIRED_EVENT = "checkout.session.expired"
PAYMENT_FAILED_EVENT = "payment_intent.payment_failed"
PAID_STATUSES = frozenset({"paid", "no_payment_required"})


class WebhookHandler:
    """Handler for processing Stripe webhook events.

    Moves orders to completed or expired and releases event capacity for
    expired registrations.
    """

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(
        self,
        db: DynamoDBService,
        orders: OrderStore,
        catalog: CatalogService,
    ) -> None:
        """Initialize webhook handler.

        Args:
            db: DynamoDB service instance for the event log
            orders: Order record store
            catalog: Catalog service, used to release capacity
        """
        self._db = db
        self.orders = orders
        self.catalog = catalog

    def is_event_already_processed(self, event_id: str) -> bool:
        """Check if webhook event was already processed (idempotency).

        Events recorded with an error result are retried, not skipped.
        """
        existing = self._db.get_item(
            self.WEBHOOK_EVENTS_TABLE, {"event_id": event_id}, consistent_read=True
        )
        if existing is None:
            return False
        return existing.get("processing_result") != WebhookProcessingResult.ERROR.value

    def log_event(self, record: StripeWebhookEvent) -> None:
        """Log webhook event to DynamoDB for idempotency and audit trail."""
        self._db.put_item(self.WEBHOOK_EVENTS_TABLE, record.to_item())

    def handle_event(
        self, event: dict[str, Any], payload_hash: str
    ) -> tuple[WebhookProcessingResult, str | None]:
        """Process a verified Stripe event.

        Args:
            event: Parsed Stripe webhook event
            payload_hash: SHA-256 hash of the raw payload

        Returns:
            Tuple of (processing_result, message)

        Raises:
            CheckoutError: WEBHOOK_PROCESSING_FAILED when storage fails, so
                Stripe retries the delivery
        """
        event_id = event["id"]
        event_type = event["type"]
        session = event.get("data", {}).get("object", {}) or {}
        metadata = session.get("metadata") or {}
        order_id = metadata.get("order_id")

        try:
            if self.is_event_already_processed(event_id):
                log_webhook_event(
                    logger,
                    event_type,
                    event_id,
                    order_id=order_id,
                    result=WebhookProcessingResult.DUPLICATE.value,
                )
                return WebhookProcessingResult.DUPLICATE, "Event already processed"

            if event_type in COMPLETED_EVENTS:
                result, message = self._process_completed(session, order_id)
            elif event_type == EXPIRED_EVENT:
                result, message = self._process_expired(order_id)
            elif event_type == PAYMENT_FAILED_EVENT:
                result, message = self._process_payment_failed(session)
            else:
                result, message = (
                    WebhookProcessingResult.IGNORED,
                    f"Unhandled event type: {event_type}",
                )

            self.log_event(
                StripeWebhookEvent(
                    event_id=event_id,
                    event_type=event_type,
                    processed_at=dt.datetime.now(dt.UTC),
                    payload_hash=payload_hash,
                    order_id=order_id,
                    processing_result=result,
                    error_message=message if result != WebhookProcessingResult.SUCCESS else None,
                )
            )
        except (ClientError, BotoCoreError) as e:
            self._record_failure(event_id, event_type, payload_hash, order_id, e)
            raise CheckoutError(
                ErrorCode.WEBHOOK_PROCESSING_FAILED, {"event_id": event_id}
            ) from e

        log_webhook_event(
            logger,
            event_type,
            event_id,
            order_id=order_id,
            result=result.value,
        )
        return result, message

    def _process_completed(
        self, session: dict[str, Any], order_id: str | None
    ) -> tuple[WebhookProcessingResult, str | None]:
        if not order_id:
            logger.warning("Checkout session %s without order_id in metadata", session.get("id"))
            return WebhookProcessingResult.SKIPPED, "Missing order_id in metadata"

        payment_status = session.get("payment_status")
        if payment_status not in PAID_STATUSES:
            return (
                WebhookProcessingResult.SKIPPED,
                f"Payment status is '{payment_status}', not 'paid'",
            )

        outcome = self.orders.mark_completed(order_id, session_id=session.get("id"))
        return self._outcome_result(order_id, outcome, "completed")

    def _process_expired(
        self, order_id: str | None
    ) -> tuple[WebhookProcessingResult, str | None]:
        if not order_id:
            return WebhookProcessingResult.SKIPPED, "Missing order_id in metadata"

        order = self.orders.get_order(order_id, consistent_read=True)
        if order is None:
            return self._outcome_result(order_id, TransitionOutcome.NOT_FOUND, "expired")

        release = None
        if order.order_type == OrderType.REGISTRATION:
            release = self.catalog.release_event_slot_item(order.entity_id)
        outcome = self.orders.mark_expired(order_id, release=release)
        return self._outcome_result(order_id, outcome, "expired")

    def _process_payment_failed(
        self, payment_intent: dict[str, Any]
    ) -> tuple[WebhookProcessingResult, str | None]:
        error = payment_intent.get("last_payment_error") or {}
        logger.warning(
            "Payment failed for PaymentIntent %s: %s",
            payment_intent.get("id"),
            error.get("message", "unknown error"),
        )
        return WebhookProcessingResult.SUCCESS, "Payment failure logged"

    @staticmethod
    def _outcome_result(
        order_id: str, outcome: TransitionOutcome, target: str
    ) -> tuple[WebhookProcessingResult, str | None]:
        if outcome == TransitionOutcome.APPLIED:
            return WebhookProcessingResult.SUCCESS, f"Order {order_id} {target}"
        if outcome == TransitionOutcome.ALREADY_APPLIED:
            return WebhookProcessingResult.SUCCESS, f"Order {order_id} already {target}"
        if outcome == TransitionOutcome.NOT_FOUND:
            return WebhookProcessingResult.SKIPPED, f"Order {order_id} not found"
        return (
            WebhookProcessingResult.SKIPPED,
            f"Order {order_id} is no longer pending, not marking {target}",
        )

    def _record_failure(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str,
        order_id: str | None,
        error: Exception,
    ) -> None:
        log_webhook_event(
            logger,
            event_type,
            event_id,
            order_id=order_id,
            result=WebhookProcessingResult.ERROR.value,
            error=str(error),
        )
        try:
            self.log_event(
                StripeWebhookEvent(
                    event_id=event_id,
                    event_type=event_type,
                    processed_at=dt.datetime.now(dt.UTC),
                    payload_hash=payload_hash,
                    order_id=order_id,
                    processing_result=WebhookProcessingResult.ERROR,
                    error_message=str(error),
                )
            )
        except (ClientError, BotoCoreError):
            logger.exception("Failed to record webhook error for %s", event_id)
