"""Integration tests for the full checkout lifecycle through the API.

Flows:
1. Paid registration: checkout -> Stripe webhook -> completed
2. Free registration: completed without any Stripe call
3. Capacity: the last slot is taken, the next checkout is sold out
4. Abandoned checkout: session expiry frees the slot again
5. Lost webhook: the reconciliation sweep settles the order
"""

import json
import time
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from starlette.status import HTTP_200_OK, HTTP_400_BAD_REQUEST

from commerce_api.dependencies import get_reconciliation_service
from conftest import TABLE_PREFIX, build_session, sign_payload


def _checkout(client: TestClient, entity_id: int, email: str = "fan@example.com") -> Any:
    return client.post(
        "/api/checkout/events",
        json={"entityId": entity_id, "email": email, "name": "Sam Rivera"},
    )


def _deliver(
    client: TestClient, event_type: str, order_id: str, event_id: str, paid: bool = True
) -> Any:
    event = {
        "id": event_id,
        "type": event_type,
        "created": int(time.time()),
        "data": {
            "object": {
                "id": "cs_test_abc123",
                "payment_status": "paid" if paid else "unpaid",
                "metadata": {"order_id": order_id},
            }
        },
    }
    payload = json.dumps(event).encode()
    return client.post(
        "/api/webhooks/stripe",
        content=payload,
        headers={"Content-Type": "application/json", "Stripe-Signature": sign_payload(payload)},
    )


def _order_status(client: TestClient, order_id: str) -> str:
    return client.get(f"/api/orders/{order_id}").json()["status"]


def test_paid_registration_completes_on_webhook(
    client: TestClient, stripe_client: MagicMock, put_event
) -> None:
    put_event(1, ticket_price_cents=2500, max_attendees=50)

    checkout = _checkout(client, 1)
    assert checkout.status_code == HTTP_200_OK
    order_id = checkout.json()["orderId"]
    assert _order_status(client, order_id) == "pending"

    params = stripe_client.checkout.sessions.create.call_args.kwargs["params"]
    assert params["metadata"]["order_id"] == order_id
    assert params["line_items"] == [{"price": "price_test_123", "quantity": 1}]

    webhook = _deliver(client, "checkout.session.completed", order_id, "evt_paid_1")
    assert webhook.json()["processingResult"] == "success"
    assert _order_status(client, order_id) == "completed"

    replay = _deliver(client, "checkout.session.completed", order_id, "evt_paid_1")
    assert replay.json()["processingResult"] == "duplicate"
    assert _order_status(client, order_id) == "completed"


def test_free_registration_skips_stripe(
    client: TestClient, stripe_client: MagicMock, put_event
) -> None:
    put_event(2, is_free=True, max_attendees=None)

    response = _checkout(client, 2)

    assert response.json()["status"] == "completed"
    assert _order_status(client, response.json()["orderId"]) == "completed"
    stripe_client.prices.create.assert_not_called()
    stripe_client.checkout.sessions.create.assert_not_called()


def test_capacity_is_never_oversold(
    client: TestClient, stripe_client: MagicMock, put_event, dynamodb_resource, get_item
) -> None:
    put_event(3, max_attendees=2)

    first = _checkout(client, 3, "a@example.com")
    second = _checkout(client, 3, "b@example.com")
    third = _checkout(client, 3, "c@example.com")

    assert first.status_code == HTTP_200_OK
    assert second.status_code == HTTP_200_OK
    assert third.status_code == HTTP_400_BAD_REQUEST
    assert third.json()["error_code"] == "ERR_006"
    assert get_item("events", {"event_id": 3})["registration_count"] == 2
    orders = dynamodb_resource.Table(f"{TABLE_PREFIX}-orders").scan()["Items"]
    assert len(orders) == 2

    # Abandoning one checkout frees its slot
    expired = _deliver(client, "checkout.session.expired", first.json()["orderId"], "evt_exp_1")
    assert expired.json()["processingResult"] == "success"
    assert get_item("events", {"event_id": 3})["registration_count"] == 1
    assert _checkout(client, 3, "c@example.com").status_code == HTTP_200_OK


def test_reconciliation_settles_lost_webhooks(
    client: TestClient, stripe_client: MagicMock, put_event, dynamodb_resource, get_item
) -> None:
    put_event(4, max_attendees=10)
    stripe_client.checkout.sessions.create.side_effect = [
        build_session("cs_test_paid"),
        build_session("cs_test_gone"),
    ]
    paid = _checkout(client, 4, "paid@example.com").json()["orderId"]
    abandoned = _checkout(client, 4, "gone@example.com").json()["orderId"]

    # Age both orders past the sweep threshold
    orders = dynamodb_resource.Table(f"{TABLE_PREFIX}-orders")
    old = (datetime.now(UTC) - timedelta(hours=2)).isoformat()
    for order_id in (paid, abandoned):
        orders.update_item(
            Key={"order_id": order_id},
            UpdateExpression="SET created_at = :old",
            ExpressionAttributeValues={":old": old},
        )

    sessions = {
        "cs_test_paid": build_session("cs_test_paid", status="complete", payment_status="paid"),
        "cs_test_gone": build_session("cs_test_gone", status="expired", payment_status="unpaid"),
    }
    stripe_client.checkout.sessions.retrieve.side_effect = lambda session_id: sessions[session_id]

    report = get_reconciliation_service().sweep()

    assert report.scanned == 2
    assert report.completed == 1
    assert report.expired == 1
    assert _order_status(client, paid) == "completed"
    assert _order_status(client, abandoned) == "expired"
    assert get_item("events", {"event_id": 4})["registration_count"] == 1
