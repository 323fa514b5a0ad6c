"""Pytest configuration and fixtures for the commerce backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (events, products, orders, webhook events)
- Catalog and order factories
- A mocked Stripe client behind the real StripeService
- An API test client and webhook signing helper
"""

import hashlib
import hmac
import os
import time
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any, Callable, Generator
from unittest.mock import MagicMock, patch

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-commerce")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_abc123xyz")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret_for_testing")
os.environ.setdefault("PUBLIC_BASE_URL", "https://api.example.com")
os.environ.setdefault("FRONTEND_URL", "https://example.com")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from commerce.models import Order, OrderStatus, OrderType  # noqa: E402
from commerce.services.catalog_service import CatalogService  # noqa: E402
from commerce.services.dynamodb import DynamoDBService  # noqa: E402
from commerce.services.order_store import OrderStore, generate_order_id  # noqa: E402

TEST_REGION = os.environ["AWS_DEFAULT_REGION"]
TABLE_PREFIX = os.environ["DYNAMODB_TABLE_PREFIX"]
TEST_WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Ensures tests using mock_aws get fresh service instances inside the
    mock context rather than reusing one from a previous test.
    """
    from commerce.services.ssm_service import SSMService
    from commerce_api.dependencies import reset_services

    reset_services()
    SSMService._cache.clear()
    yield
    reset_services()
    SSMService._cache.clear()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = TEST_REGION


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        yield boto3.client("dynamodb", region_name=TEST_REGION)


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    tables = [
        {
            "TableName": f"{TABLE_PREFIX}-events",
            "KeySchema": [{"AttributeName": "event_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "event_id", "AttributeType": "N"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-products",
            "KeySchema": [{"AttributeName": "product_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "product_id", "AttributeType": "N"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-orders",
            "KeySchema": [{"AttributeName": "order_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "order_id", "AttributeType": "S"},
                {"AttributeName": "status", "AttributeType": "S"},
                {"AttributeName": "created_at", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "status-created_at-index",
                    "KeySchema": [
                        {"AttributeName": "status", "KeyType": "HASH"},
                        {"AttributeName": "created_at", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-stripe-webhook-events",
            "KeySchema": [{"AttributeName": "event_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "event_id", "AttributeType": "S"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
    ]

    for table_config in tables:
        dynamodb_client.create_table(**table_config)


@pytest.fixture
def dynamodb_resource(create_tables: None) -> Any:
    """DynamoDB resource for seeding and inspecting the mocked tables."""
    return boto3.resource("dynamodb", region_name=TEST_REGION)


@pytest.fixture
def db(create_tables: None) -> DynamoDBService:
    """DynamoDBService bound to the mocked tables."""
    return DynamoDBService()


@pytest.fixture
def catalog(db: DynamoDBService) -> CatalogService:
    return CatalogService(db)


@pytest.fixture
def order_store(db: DynamoDBService) -> OrderStore:
    return OrderStore(db)


# === Sample Data Fixtures ===


@pytest.fixture
def put_event(dynamodb_resource: Any) -> Callable[..., dict[str, Any]]:
    """Factory writing an event item; keyword overrides replace defaults.

    Passing None for a field leaves it out of the item.
    """
    table = dynamodb_resource.Table(f"{TABLE_PREFIX}-events")

    def _put(event_id: int = 1, **overrides: Any) -> dict[str, Any]:
        item: dict[str, Any] = {
            "event_id": event_id,
            "title": "Spring Gallery Opening",
            "slug": "spring-gallery-opening",
            "venue": "Harbor Arts Center",
            "start_date": (datetime.now(UTC) + timedelta(days=30)).isoformat(),
            "published": True,
            "is_free": False,
            "ticket_price_cents": 2500,
            "max_attendees": 10,
            "registration_count": 0,
        }
        item.update(overrides)
        item = {k: v for k, v in item.items() if v is not None}
        table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def put_product(dynamodb_resource: Any) -> Callable[..., dict[str, Any]]:
    """Factory writing a product item."""
    table = dynamodb_resource.Table(f"{TABLE_PREFIX}-products")

    def _put(product_id: int = 1, **overrides: Any) -> dict[str, Any]:
        item: dict[str, Any] = {
            "product_id": product_id,
            "title": "Tour Poster",
            "price_cents": 1800,
            "published": True,
        }
        item.update(overrides)
        item = {k: v for k, v in item.items() if v is not None}
        table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def get_item(dynamodb_resource: Any) -> Callable[[str, dict[str, Any]], dict[str, Any] | None]:
    """Read a raw item from a mocked table by suffix and key."""

    def _get(table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        response = dynamodb_resource.Table(f"{TABLE_PREFIX}-{table}").get_item(Key=key)
        return response.get("Item")

    return _get


@pytest.fixture
def make_order(order_store: OrderStore) -> Callable[..., Order]:
    """Factory creating an order record through the store."""

    def _make(
        order_type: OrderType = OrderType.REGISTRATION,
        *,
        entity_id: int = 1,
        status: OrderStatus = OrderStatus.PENDING,
        amount_cents: int = 2500,
        session_id: str | None = "cs_test_abc123",
        age: timedelta = timedelta(0),
        ticket_code: str | None = None,
    ) -> Order:
        created = datetime.now(UTC) - age
        order = Order(
            order_id=generate_order_id(order_type),
            order_type=order_type,
            entity_id=entity_id,
            customer_email="fan@example.com",
            customer_name="Sam Rivera",
            amount_cents=amount_cents,
            currency="usd",
            status=status,
            stripe_session_id=session_id,
            ticket_code=ticket_code,
            created_at=created,
            updated_at=created,
        )
        return order_store.create_order(order)

    return _make


# === Stripe Fixtures ===


def build_session(
    session_id: str = "cs_test_abc123",
    *,
    status: str = "open",
    payment_status: str = "unpaid",
    amount_total: int = 2500,
    metadata: dict[str, str] | None = None,
    customer_email: str | None = "fan@example.com",
) -> SimpleNamespace:
    """Build an object shaped like a Stripe Checkout Session."""
    return SimpleNamespace(
        id=session_id,
        url=f"https://checkout.stripe.com/c/pay/{session_id}",
        status=status,
        payment_status=payment_status,
        amount_total=amount_total,
        currency="usd",
        customer_email=customer_email,
        metadata=metadata or {},
    )


@pytest.fixture
def session_factory() -> Callable[..., SimpleNamespace]:
    """Expose build_session to tests."""
    return build_session


@pytest.fixture
def stripe_client() -> Generator[MagicMock, None, None]:
    """Mock StripeClient used by the real StripeService."""
    with patch("commerce.services.stripe_service.StripeClient") as mock_client_class:
        mock_client = MagicMock()
        mock_client.prices.create.return_value = SimpleNamespace(
            id="price_test_123", product="prod_test_123"
        )
        mock_client.checkout.sessions.create.return_value = build_session()
        mock_client_class.return_value = mock_client
        yield mock_client


# === API Fixtures ===


def sign_payload(payload: bytes, secret: str = TEST_WEBHOOK_SECRET) -> str:
    """Create a Stripe-Signature header (t=...,v1=HMAC-SHA256) for a payload."""
    timestamp = str(int(time.time()))
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def client(create_tables: None) -> TestClient:
    """Test client for the API, backed by the mocked tables."""
    from commerce_api.main import app

    return TestClient(app, raise_server_exceptions=False)
