"""Reconciliation sweep for orders whose webhook never arrived.

Pending orders older than the checkout session lifetime are checked
against Stripe and moved to their terminal state. Orders that never got
a session (the provider failed during checkout) are expired directly.
"""

import datetime as dt
import logging

from botocore.exceptions import BotoCoreError, ClientError

from commerce.models import Order, OrderType, ReconciliationReport, TransitionOutcome

from .catalog_service import CatalogService
from .order_store import OrderStore
from .stripe_service import StripeService, StripeServiceError

logger = logging.getLogger(__name__)

DEFAULT_MIN_AGE = dt.timedelta(hours=1)
PAID_STATUSES = frozenset({"paid", "no_payment_required"})


class ReconciliationService:
    """Settles stale pending orders from the provider's session state."""

    def __init__(
        self,
        orders: OrderStore,
        catalog: CatalogService,
        stripe_service: StripeService,
    ) -> None:
        self.orders = orders
        self.catalog = catalog
        self.stripe = stripe_service

    def sweep(self, older_than: dt.timedelta = DEFAULT_MIN_AGE) -> ReconciliationReport:
        """Reconcile pending orders created more than ``older_than`` ago.

        Args:
            older_than: Minimum order age. Should exceed the checkout
                session lifetime so open sessions are left alone.

        Returns:
            ReconciliationReport with per-outcome counts
        """
        cutoff = dt.datetime.now(dt.UTC) - older_than
        pending = self.orders.list_pending_older_than(cutoff)
        report = ReconciliationReport(scanned=len(pending))
        logger.info("Reconciling %d pending orders created before %s", len(pending), cutoff)

        for order in pending:
            try:
                self._reconcile(order, report)
            except (StripeServiceError, ClientError, BotoCoreError) as e:
                report.errors += 1
                logger.warning("Could not reconcile order %s: %s", order.order_id, e)

        logger.info(
            "Reconciliation done: scanned=%d completed=%d expired=%d still_open=%d errors=%d",
            report.scanned,
            report.completed,
            report.expired,
            report.still_open,
            report.errors,
        )
        return report

    def _reconcile(self, order: Order, report: ReconciliationReport) -> None:
        if not order.stripe_session_id:
            self._expire(order, report)
            return

        session = self.stripe.retrieve_checkout_session(order.stripe_session_id)
        status = session["status"]

        if status == "complete" and session["payment_status"] in PAID_STATUSES:
            outcome = self.orders.mark_completed(
                order.order_id, session_id=order.stripe_session_id
            )
            if outcome == TransitionOutcome.APPLIED:
                report.completed += 1
        elif status == "expired":
            self._expire(order, report)
        else:
            report.still_open += 1

    def _expire(self, order: Order, report: ReconciliationReport) -> None:
        release = None
        if order.order_type == OrderType.REGISTRATION:
            release = self.catalog.release_event_slot_item(order.entity_id)
        outcome = self.orders.mark_expired(order.order_id, release=release)
        if outcome == TransitionOutcome.APPLIED:
            report.expired += 1
