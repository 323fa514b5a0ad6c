"""Contract tests for GET /api/orders/{order_id} and the health endpoints."""

from fastapi.testclient import TestClient
from starlette.status import HTTP_200_OK, HTTP_404_NOT_FOUND

from commerce.models import OrderType


def test_get_order(client: TestClient, make_order) -> None:
    order = make_order(OrderType.REGISTRATION, ticket_code="ABC-DEFG-HJKM")

    response = client.get(f"/api/orders/{order.order_id.lower()}")

    assert response.status_code == HTTP_200_OK
    data = response.json()
    assert data["orderId"] == order.order_id
    assert data["orderType"] == "registration"
    assert data["status"] == "pending"
    assert data["amountCents"] == 2500
    assert data["ticketCode"] == "ABC-DEFG-HJKM"
    assert "customerEmail" not in data


def test_unknown_order(client: TestClient) -> None:
    response = client.get("/api/orders/REG-FFFFFFFFFFFF")

    assert response.status_code == HTTP_404_NOT_FOUND
    assert response.json()["error_code"] == "ERR_007"


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == HTTP_200_OK
    assert response.json()["status"] == "healthy"


def test_ping_echoes_correlation_id(client: TestClient) -> None:
    response = client.get("/api/ping", headers={"X-Correlation-ID": "test-corr-1"})

    assert response.status_code == HTTP_200_OK
    assert response.headers["X-Correlation-ID"] == "test-corr-1"
