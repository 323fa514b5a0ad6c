"""Checkout session initiator.

Turns a customer's intent to register for an event or buy a product into
a local order record plus, for priced items, a hosted Stripe Checkout
session. Zero-cost items are completed on the spot without contacting
Stripe.
"""

import datetime as dt
import logging
import os
from typing import Any

from commerce.models import (
    CheckoutError,
    CheckoutResult,
    ErrorCode,
    Event,
    Order,
    OrderStatus,
    OrderType,
    Product,
)
from commerce.utils.logging import log_order_operation
from commerce.utils.tickets import generate_ticket_code

from .catalog_service import CatalogService
from .order_store import OrderStore, generate_order_id
from .stripe_service import StripeNotConfiguredError, StripeService, StripeServiceError

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "usd"
DEFAULT_PUBLIC_BASE_URL = "http://localhost:8080"
DEFAULT_FRONTEND_URL = "http://localhost:3000"


def parse_entity_id(raw: Any) -> int:
    """Parse a positive integer entity ID from a request value.

    Raises:
        CheckoutError: INVALID_ID if the value is not a positive integer
    """
    if isinstance(raw, bool):
        raise CheckoutError(ErrorCode.INVALID_ID, {"entityId": str(raw)})
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdigit():
        value = int(raw.strip())
    else:
        raise CheckoutError(ErrorCode.INVALID_ID, {"entityId": str(raw)})

    if value <= 0:
        raise CheckoutError(ErrorCode.INVALID_ID, {"entityId": str(raw)})
    return value


def _payment_error(error: StripeServiceError) -> CheckoutError:
    if isinstance(error, StripeNotConfiguredError):
        return CheckoutError(ErrorCode.PAYMENT_SERVICE_UNAVAILABLE)
    details = {"stripe_error_code": error.stripe_error_code} if error.stripe_error_code else None
    return CheckoutError(ErrorCode.PAYMENT_SERVICE_ERROR, details)


class CheckoutService:
    """Creates orders and Stripe Checkout sessions for events and products."""

    def __init__(
        self,
        catalog: CatalogService,
        orders: OrderStore,
        stripe_service: StripeService,
        *,
        currency: str | None = None,
        public_base_url: str | None = None,
        frontend_url: str | None = None,
    ) -> None:
        """Initialize checkout service.

        Args:
            catalog: Catalog service for events and products
            orders: Order record store
            stripe_service: Stripe API wrapper
            currency: Charge currency. Defaults to STRIPE_CURRENCY or usd.
            public_base_url: Base URL of this API, used for the success
                redirect. Defaults to PUBLIC_BASE_URL.
            frontend_url: Base URL of the site, used for cancel redirects.
                Defaults to FRONTEND_URL.
        """
        self.catalog = catalog
        self.orders = orders
        self.stripe = stripe_service
        self.currency = (currency or os.getenv("STRIPE_CURRENCY", DEFAULT_CURRENCY)).lower()
        self.public_base_url = (
            public_base_url or os.getenv("PUBLIC_BASE_URL", DEFAULT_PUBLIC_BASE_URL)
        ).rstrip("/")
        self.frontend_url = (
            frontend_url or os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL)
        ).rstrip("/")

    @property
    def success_url(self) -> str:
        return f"{self.public_base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}"

    def checkout_event(self, entity_id: Any, email: str, name: str) -> CheckoutResult:
        """Start a registration for an event.

        Args:
            entity_id: Event ID (int or numeric string)
            email: Customer email
            name: Customer name

        Returns:
            CheckoutResult with a checkout URL, or a completed free order

        Raises:
            CheckoutError: INVALID_ID, ENTITY_NOT_FOUND, REGISTRATION_CLOSED,
                SOLD_OUT, PAYMENT_SERVICE_ERROR or PAYMENT_SERVICE_UNAVAILABLE
        """
        event_id = parse_entity_id(entity_id)
        event = self.catalog.get_event(event_id)
        if event is None or event.deleted_at is not None:
            raise CheckoutError(ErrorCode.ENTITY_NOT_FOUND, {"entityId": str(event_id)})

        if not event.published or (
            event.start_date is not None and event.start_date <= dt.datetime.now(dt.UTC)
        ):
            raise CheckoutError(ErrorCode.REGISTRATION_CLOSED, {"entityId": str(event_id)})

        # Full events are turned away before any Stripe call; the reservation
        # below still decides races.
        if event.max_attendees is not None and event.registration_count >= event.max_attendees:
            raise CheckoutError(ErrorCode.SOLD_OUT, {"entityId": str(event_id)})

        amount = event.price_cents
        price_id = None
        if amount > 0:
            price_id = self._ensure_price(
                CatalogService.EVENTS_TABLE, {"event_id": event_id}, event, amount
            )

        if event.max_attendees is not None:
            if not self.catalog.reserve_event_slot(event_id, event.max_attendees):
                raise CheckoutError(ErrorCode.SOLD_OUT, {"entityId": str(event_id)})

        try:
            order = self._new_order(
                OrderType.REGISTRATION,
                event_id,
                email=email,
                name=name,
                amount=amount,
                ticket_code=generate_ticket_code(),
            )
        except Exception:
            if event.is_capacity_limited:
                self.catalog.release_event_slot(event_id)
            raise

        if price_id is None:
            return self._free_result(order)

        return self._start_session(
            order,
            price_id=price_id,
            entity_title=event.title,
            cancel_url=f"{self.frontend_url}/events/{event.slug}?cancelled=true",
        )

    def checkout_product(self, entity_id: Any, email: str, name: str) -> CheckoutResult:
        """Start a purchase of a product.

        Args:
            entity_id: Product ID (int or numeric string)
            email: Customer email
            name: Customer name

        Returns:
            CheckoutResult with a checkout URL, or a completed free order

        Raises:
            CheckoutError: INVALID_ID, ENTITY_NOT_FOUND, REGISTRATION_CLOSED,
                PAYMENT_SERVICE_ERROR or PAYMENT_SERVICE_UNAVAILABLE
        """
        product_id = parse_entity_id(entity_id)
        product = self.catalog.get_product(product_id)
        if product is None:
            raise CheckoutError(ErrorCode.ENTITY_NOT_FOUND, {"entityId": str(product_id)})
        if not product.published:
            raise CheckoutError(ErrorCode.REGISTRATION_CLOSED, {"entityId": str(product_id)})

        amount = product.price_cents
        price_id = None
        if amount > 0:
            price_id = self._ensure_price(
                CatalogService.PRODUCTS_TABLE, {"product_id": product_id}, product, amount
            )

        order = self._new_order(
            OrderType.PURCHASE, product_id, email=email, name=name, amount=amount
        )
        if price_id is None:
            return self._free_result(order)

        return self._start_session(
            order,
            price_id=price_id,
            entity_title=product.title,
            cancel_url=f"{self.frontend_url}/merchandise",
        )

    def _ensure_price(
        self,
        table: str,
        key: dict[str, Any],
        entity: Event | Product,
        amount: int,
    ) -> str:
        """Return a Stripe price for the entity's current amount.

        The cached price is reused while it was created for the same amount;
        otherwise a new one is created and stored on the entity.
        """
        if entity.stripe_price_id and entity.stripe_price_cents == amount:
            return entity.stripe_price_id

        try:
            price = self.stripe.create_price(
                title=entity.title,
                amount_cents=amount,
                currency=self.currency,
                product_id=entity.stripe_product_id,
            )
        except StripeServiceError as e:
            raise _payment_error(e) from e

        saved = self.catalog.save_stripe_price(
            table,
            key,
            price_id=price["price_id"],
            product_id=price["product_id"],
            amount_cents=amount,
            previous_price_id=entity.stripe_price_id,
        )
        if not saved:
            logger.info("Price for %s %s was updated concurrently", table, key)
        return price["price_id"]

    def _new_order(
        self,
        order_type: OrderType,
        entity_id: int,
        *,
        email: str,
        name: str,
        amount: int,
        ticket_code: str | None = None,
    ) -> Order:
        now = dt.datetime.now(dt.UTC)
        is_free = amount == 0
        order = Order(
            order_id=generate_order_id(order_type),
            order_type=order_type,
            entity_id=entity_id,
            customer_email=email,
            customer_name=name,
            amount_cents=amount,
            currency=self.currency,
            status=OrderStatus.COMPLETED if is_free else OrderStatus.PENDING,
            ticket_code=ticket_code,
            created_at=now,
            updated_at=now,
            completed_at=now if is_free else None,
        )
        return self.orders.create_order(order)

    def _free_result(self, order: Order) -> CheckoutResult:
        log_order_operation(
            logger,
            "checkout_free",
            order_id=order.order_id,
            entity_id=order.entity_id,
            status=order.status.value,
        )
        return CheckoutResult(
            is_free=True,
            order_id=order.order_id,
            status=order.status,
            ticket_code=order.ticket_code,
        )

    def _start_session(
        self,
        order: Order,
        *,
        price_id: str,
        entity_title: str,
        cancel_url: str,
    ) -> CheckoutResult:
        metadata = {
            "order_type": order.order_type.value,
            "entity_id": str(order.entity_id),
            "entity_title": entity_title,
            "customer_name": order.customer_name,
        }
        if order.ticket_code:
            metadata["ticket_code"] = order.ticket_code

        try:
            session = self.stripe.create_checkout_session(
                order_id=order.order_id,
                price_id=price_id,
                customer_email=order.customer_email,
                success_url=self.success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except StripeServiceError as e:
            # Left pending without a session; the reconciliation sweep expires it.
            self.orders.record_checkout_failure(order.order_id, str(e))
            raise _payment_error(e) from e

        self.orders.attach_session(order.order_id, session["session_id"])
        log_order_operation(
            logger,
            "create_checkout_session",
            order_id=order.order_id,
            entity_id=order.entity_id,
            amount_cents=order.amount_cents,
            status=OrderStatus.PENDING.value,
            session_id=session["session_id"],
        )
        return CheckoutResult(
            is_free=False,
            order_id=order.order_id,
            status=OrderStatus.PENDING,
            checkout_url=session["checkout_url"],
            session_id=session["session_id"],
            ticket_code=order.ticket_code,
        )
