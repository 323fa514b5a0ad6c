"""Unit tests for CheckoutService.

Catalog and order records live in moto DynamoDB; the Stripe boundary is a
MagicMock so each failure mode can be injected.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from commerce.models import CheckoutError, ErrorCode, OrderStatus, OrderType
from commerce.services.catalog_service import CatalogService
from commerce.services.checkout_service import CheckoutService, parse_entity_id
from commerce.services.order_store import OrderStore
from commerce.services.stripe_service import (
    StripeNotConfiguredError,
    StripeService,
    StripeServiceError,
)


@pytest.fixture
def mock_stripe() -> MagicMock:
    stripe_service = MagicMock(spec=StripeService)
    stripe_service.create_price.return_value = {
        "price_id": "price_test_123",
        "product_id": "prod_test_123",
    }
    stripe_service.create_checkout_session.return_value = {
        "session_id": "cs_test_abc123",
        "checkout_url": "https://checkout.stripe.com/c/pay/cs_test_abc123",
        "status": "open",
        "payment_status": "unpaid",
        "amount_total": 2500,
        "currency": "usd",
        "customer_email": "fan@example.com",
        "metadata": {},
    }
    return stripe_service


@pytest.fixture
def checkout(
    catalog: CatalogService, order_store: OrderStore, mock_stripe: MagicMock
) -> CheckoutService:
    return CheckoutService(
        catalog,
        order_store,
        mock_stripe,
        currency="usd",
        public_base_url="https://api.example.com",
        frontend_url="https://example.com",
    )


def _error_code(exc_info: pytest.ExceptionInfo[CheckoutError]) -> ErrorCode:
    return exc_info.value.code


class TestParseEntityId:
    @pytest.mark.parametrize("raw, expected", [(5, 5), ("12", 12), (" 7 ", 7)])
    def test_accepts_positive_integers(self, raw, expected) -> None:
        assert parse_entity_id(raw) == expected

    @pytest.mark.parametrize("raw", [0, -3, "abc", "1.5", True, None, 2.0])
    def test_rejects_everything_else(self, raw) -> None:
        with pytest.raises(CheckoutError) as exc_info:
            parse_entity_id(raw)
        assert _error_code(exc_info) == ErrorCode.INVALID_ID


class TestPaidEventCheckout:
    def test_creates_pending_order_and_session(
        self,
        checkout: CheckoutService,
        order_store: OrderStore,
        mock_stripe: MagicMock,
        put_event,
        get_item,
    ) -> None:
        put_event(1, ticket_price_cents=2500, max_attendees=10)

        result = checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        assert result.is_free is False
        assert result.status == OrderStatus.PENDING
        assert result.checkout_url == "https://checkout.stripe.com/c/pay/cs_test_abc123"
        assert result.session_id == "cs_test_abc123"
        assert result.order_id.startswith("REG-")

        order = order_store.get_order(result.order_id)
        assert order.status == OrderStatus.PENDING
        assert order.amount_cents == 2500
        assert order.order_type == OrderType.REGISTRATION
        assert order.stripe_session_id == "cs_test_abc123"
        assert order.ticket_code == result.ticket_code

        assert get_item("events", {"event_id": 1})["registration_count"] == 1

    def test_session_parameters(
        self, checkout: CheckoutService, mock_stripe: MagicMock, put_event
    ) -> None:
        put_event(1, slug="spring-gallery-opening", title="Spring Gallery Opening")

        result = checkout.checkout_event("1", "fan@example.com", "Sam Rivera")

        kwargs = mock_stripe.create_checkout_session.call_args.kwargs
        assert kwargs["order_id"] == result.order_id
        assert kwargs["price_id"] == "price_test_123"
        assert kwargs["customer_email"] == "fan@example.com"
        assert kwargs["success_url"] == (
            "https://api.example.com/checkout/success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert kwargs["cancel_url"] == (
            "https://example.com/events/spring-gallery-opening?cancelled=true"
        )
        assert kwargs["metadata"] == {
            "order_type": "registration",
            "entity_id": "1",
            "entity_title": "Spring Gallery Opening",
            "customer_name": "Sam Rivera",
            "ticket_code": result.ticket_code,
        }

    def test_caches_stripe_price(
        self, checkout: CheckoutService, catalog: CatalogService, mock_stripe: MagicMock, put_event
    ) -> None:
        put_event(1)

        checkout.checkout_event(1, "a@example.com", "A")
        checkout.checkout_event(1, "b@example.com", "B")

        assert mock_stripe.create_price.call_count == 1
        assert catalog.get_event(1).stripe_price_id == "price_test_123"

    def test_recreates_price_when_amount_changes(
        self, checkout: CheckoutService, catalog: CatalogService, mock_stripe: MagicMock, put_event
    ) -> None:
        put_event(
            1,
            ticket_price_cents=3000,
            stripe_price_id="price_old",
            stripe_product_id="prod_existing",
            stripe_price_cents=2500,
        )

        checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        mock_stripe.create_price.assert_called_once_with(
            title="Spring Gallery Opening",
            amount_cents=3000,
            currency="usd",
            product_id="prod_existing",
        )
        assert catalog.get_event(1).stripe_price_cents == 3000


class TestFreeCheckout:
    def test_free_event_completes_without_stripe(
        self,
        checkout: CheckoutService,
        order_store: OrderStore,
        mock_stripe: MagicMock,
        put_event,
    ) -> None:
        put_event(2, is_free=True, ticket_price_cents=None)

        result = checkout.checkout_event(2, "fan@example.com", "Sam Rivera")

        assert result.is_free is True
        assert result.status == OrderStatus.COMPLETED
        assert result.checkout_url is None
        assert result.ticket_code is not None
        mock_stripe.create_price.assert_not_called()
        mock_stripe.create_checkout_session.assert_not_called()

        order = order_store.get_order(result.order_id)
        assert order.status == OrderStatus.COMPLETED
        assert order.amount_cents == 0
        assert order.completed_at is not None

    def test_zero_price_event_is_free(
        self, checkout: CheckoutService, mock_stripe: MagicMock, put_event
    ) -> None:
        put_event(3, ticket_price_cents=0)

        result = checkout.checkout_event(3, "fan@example.com", "Sam Rivera")

        assert result.is_free is True
        mock_stripe.create_checkout_session.assert_not_called()

    def test_free_event_still_respects_capacity(
        self, checkout: CheckoutService, put_event
    ) -> None:
        put_event(2, is_free=True, max_attendees=1, registration_count=1)

        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(2, "fan@example.com", "Sam Rivera")

        assert _error_code(exc_info) == ErrorCode.SOLD_OUT


class TestEventAvailability:
    def test_unknown_event(self, checkout: CheckoutService, create_tables) -> None:
        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(99, "fan@example.com", "Sam Rivera")
        assert _error_code(exc_info) == ErrorCode.ENTITY_NOT_FOUND

    def test_deleted_event(self, checkout: CheckoutService, put_event) -> None:
        put_event(1, deleted_at=datetime.now(UTC).isoformat())
        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")
        assert _error_code(exc_info) == ErrorCode.ENTITY_NOT_FOUND

    def test_unpublished_event(self, checkout: CheckoutService, put_event) -> None:
        put_event(1, published=False)
        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")
        assert _error_code(exc_info) == ErrorCode.REGISTRATION_CLOSED

    def test_started_event(self, checkout: CheckoutService, put_event) -> None:
        put_event(1, start_date=(datetime.now(UTC) - timedelta(hours=1)).isoformat())
        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")
        assert _error_code(exc_info) == ErrorCode.REGISTRATION_CLOSED

    def test_sold_out_creates_no_record(
        self,
        checkout: CheckoutService,
        mock_stripe: MagicMock,
        dynamodb_resource,
        put_event,
    ) -> None:
        put_event(1, max_attendees=2, registration_count=2)

        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        assert _error_code(exc_info) == ErrorCode.SOLD_OUT
        orders = dynamodb_resource.Table("test-commerce-orders").scan()["Items"]
        assert orders == []
        mock_stripe.create_checkout_session.assert_not_called()

    def test_sold_out_checked_before_stripe(
        self, checkout: CheckoutService, mock_stripe: MagicMock, put_event
    ) -> None:
        put_event(1, max_attendees=2, registration_count=2)
        mock_stripe.create_price.side_effect = StripeNotConfiguredError("no key")

        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        assert _error_code(exc_info) == ErrorCode.SOLD_OUT
        mock_stripe.create_price.assert_not_called()


class TestProviderFailures:
    def test_price_failure_leaves_no_record(
        self,
        checkout: CheckoutService,
        mock_stripe: MagicMock,
        dynamodb_resource,
        put_event,
        get_item,
    ) -> None:
        put_event(1, registration_count=0)
        mock_stripe.create_price.side_effect = StripeServiceError("boom", "api_error")

        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        assert _error_code(exc_info) == ErrorCode.PAYMENT_SERVICE_ERROR
        assert dynamodb_resource.Table("test-commerce-orders").scan()["Items"] == []
        assert get_item("events", {"event_id": 1})["registration_count"] == 0

    def test_session_failure_leaves_pending_record_without_session(
        self,
        checkout: CheckoutService,
        mock_stripe: MagicMock,
        dynamodb_resource,
        put_event,
    ) -> None:
        put_event(1)
        mock_stripe.create_checkout_session.side_effect = StripeServiceError("card network down")

        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        assert _error_code(exc_info) == ErrorCode.PAYMENT_SERVICE_ERROR
        orders = dynamodb_resource.Table("test-commerce-orders").scan()["Items"]
        assert len(orders) == 1
        assert orders[0]["status"] == "pending"
        assert "stripe_session_id" not in orders[0]
        assert orders[0]["last_error"] == "card network down"

    def test_missing_credentials(
        self, checkout: CheckoutService, mock_stripe: MagicMock, put_event
    ) -> None:
        put_event(1)
        mock_stripe.create_price.side_effect = StripeNotConfiguredError("no key")

        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_event(1, "fan@example.com", "Sam Rivera")

        assert _error_code(exc_info) == ErrorCode.PAYMENT_SERVICE_UNAVAILABLE


class TestProductCheckout:
    def test_creates_purchase_order(
        self,
        checkout: CheckoutService,
        order_store: OrderStore,
        mock_stripe: MagicMock,
        put_product,
    ) -> None:
        put_product(1, title="Tour Poster", price_cents=1800)

        result = checkout.checkout_product(1, "fan@example.com", "Sam Rivera")

        assert result.order_id.startswith("ORD-")
        assert result.ticket_code is None
        order = order_store.get_order(result.order_id)
        assert order.order_type == OrderType.PURCHASE
        assert order.amount_cents == 1800

        kwargs = mock_stripe.create_checkout_session.call_args.kwargs
        assert kwargs["cancel_url"] == "https://example.com/merchandise"
        assert "ticket_code" not in kwargs["metadata"]
        assert kwargs["metadata"]["order_type"] == "purchase"

    def test_unpublished_product(self, checkout: CheckoutService, put_product) -> None:
        put_product(1, published=False)
        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_product(1, "fan@example.com", "Sam Rivera")
        assert _error_code(exc_info) == ErrorCode.REGISTRATION_CLOSED

    def test_unknown_product(self, checkout: CheckoutService, create_tables) -> None:
        with pytest.raises(CheckoutError) as exc_info:
            checkout.checkout_product(5, "fan@example.com", "Sam Rivera")
        assert _error_code(exc_info) == ErrorCode.ENTITY_NOT_FOUND

    def test_free_product(
        self, checkout: CheckoutService, mock_stripe: MagicMock, put_product
    ) -> None:
        put_product(3, price_cents=0)

        result = checkout.checkout_product(3, "fan@example.com", "Sam Rivera")

        assert result.is_free is True
        assert result.status == OrderStatus.COMPLETED
        mock_stripe.create_checkout_session.assert_not_called()
