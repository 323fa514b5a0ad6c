"""Order record store.

Persists registration and purchase records and enforces their lifecycle:
an order leaves ``pending`` at most once, to either ``completed`` or
``expired``, and never leaves ``completed``. Every transition is a
DynamoDB conditional update on the current status, so webhook retries,
the success page and the reconciliation sweep can race safely.
"""

import datetime as dt
import logging
import uuid
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key

from commerce.models import Order, OrderStatus, OrderType, TransitionOutcome
from commerce.utils.logging import log_order_operation

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = logging.getLogger(__name__)

ORDER_ID_PREFIXES = {
    OrderType.REGISTRATION: "REG",
    OrderType.PURCHASE: "ORD",
}


def generate_order_id(order_type: OrderType) -> str:
    """Generate a unique order ID like REG-3F9A0C21B7D4."""
    return f"{ORDER_ID_PREFIXES[order_type]}-{uuid.uuid4().hex[:12].upper()}"


class OrderStore:
    """DynamoDB-backed store for order records."""

    TABLE = "orders"
    STATUS_INDEX = "status-created_at-index"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize order store.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def create_order(self, order: Order) -> Order:
        """Insert a new order record.

        Raises:
            ValueError: If an order with the same ID already exists
        """
        created = self.db.put_item(
            self.TABLE,
            self._order_to_item(order),
            condition_expression="attribute_not_exists(order_id)",
        )
        if not created:
            raise ValueError(f"Order {order.order_id} already exists")

        log_order_operation(
            logger,
            "create_order",
            order_id=order.order_id,
            entity_id=order.entity_id,
            amount_cents=order.amount_cents,
            status=order.status.value,
        )
        return order

    def get_order(self, order_id: str, consistent_read: bool = False) -> Order | None:
        """Get an order by ID, or None if it does not exist."""
        item = self.db.get_item(
            self.TABLE, {"order_id": order_id}, consistent_read=consistent_read
        )
        return self._item_to_order(item) if item else None

    def attach_session(self, order_id: str, session_id: str) -> bool:
        """Store the checkout session reference on an order.

        Returns:
            False if the order does not exist
        """
        result = self.db.update_item(
            self.TABLE,
            {"order_id": order_id},
            "SET stripe_session_id = :session, updated_at = :now REMOVE last_error",
            {":session": session_id, ":now": self._now()},
            condition_expression="attribute_exists(order_id)",
        )
        return result is not None

    def record_checkout_failure(self, order_id: str, error: str) -> None:
        """Note a provider failure on a pending order that has no session."""
        self.db.update_item(
            self.TABLE,
            {"order_id": order_id},
            "SET last_error = :error, updated_at = :now",
            {":error": error, ":now": self._now()},
            condition_expression="attribute_exists(order_id)",
        )
        log_order_operation(logger, "record_checkout_failure", order_id=order_id, error=error)

    def mark_completed(
        self, order_id: str, *, session_id: str | None = None
    ) -> TransitionOutcome:
        """Move an order from pending to completed.

        Args:
            order_id: Order ID
            session_id: Checkout session that paid for the order. Stored
                when the order does not have one yet.

        Returns:
            Outcome of the conditional transition
        """
        now = self._now()
        update = "SET #status = :completed, completed_at = :now, updated_at = :now"
        values: dict[str, Any] = {
            ":completed": OrderStatus.COMPLETED.value,
            ":pending": OrderStatus.PENDING.value,
            ":now": now,
        }
        if session_id:
            update += ", stripe_session_id = if_not_exists(stripe_session_id, :session)"
            values[":session"] = session_id

        return self._transition(order_id, OrderStatus.COMPLETED, update, values)

    def mark_expired(
        self, order_id: str, *, release: dict[str, Any] | None = None
    ) -> TransitionOutcome:
        """Move an order from pending to expired.

        Args:
            order_id: Order ID
            release: TransactItems entry giving back what the order held
                (see CatalogService.release_event_slot_item), written in the
                same transaction as the status change

        Returns:
            Outcome of the conditional transition
        """
        now = self._now()
        if release is not None:
            expire_item = {
                "Update": {
                    "TableName": self.db._table_name(self.TABLE),
                    "Key": {"order_id": {"S": order_id}},
                    "UpdateExpression": (
                        "SET #status = :expired, expired_at = :now, updated_at = :now"
                    ),
                    "ConditionExpression": "#status = :pending",
                    "ExpressionAttributeNames": {"#status": "status"},
                    "ExpressionAttributeValues": {
                        ":expired": {"S": OrderStatus.EXPIRED.value},
                        ":pending": {"S": OrderStatus.PENDING.value},
                        ":now": {"S": now},
                    },
                }
            }
            if self.db.transact_write([expire_item, release]):
                log_order_operation(
                    logger,
                    "mark_expired",
                    order_id=order_id,
                    status=OrderStatus.EXPIRED.value,
                    released=True,
                )
                return TransitionOutcome.APPLIED
            # Either the order is no longer pending or there is nothing to
            # release; the plain transition sorts out which.

        return self._transition(
            order_id,
            OrderStatus.EXPIRED,
            "SET #status = :expired, expired_at = :now, updated_at = :now",
            {
                ":expired": OrderStatus.EXPIRED.value,
                ":pending": OrderStatus.PENDING.value,
                ":now": now,
            },
        )

    def list_pending_older_than(self, cutoff: dt.datetime) -> list[Order]:
        """List pending orders created before the cutoff, oldest first."""
        items = self.db.query_by_gsi(
            self.TABLE,
            self.STATUS_INDEX,
            "status",
            OrderStatus.PENDING.value,
            sort_key_condition=Key("created_at").lt(cutoff.astimezone(dt.UTC).isoformat()),
        )
        return [self._item_to_order(item) for item in items]

    def _transition(
        self,
        order_id: str,
        target: OrderStatus,
        update_expression: str,
        values: dict[str, Any],
    ) -> TransitionOutcome:
        result = self.db.update_item(
            self.TABLE,
            {"order_id": order_id},
            update_expression,
            values,
            {"#status": "status"},  # status is reserved word
            condition_expression="#status = :pending",
        )
        if result is not None:
            log_order_operation(
                logger,
                f"mark_{target.value}",
                order_id=order_id,
                status=target.value,
            )
            return TransitionOutcome.APPLIED

        current = self.get_order(order_id, consistent_read=True)
        if current is None:
            outcome = TransitionOutcome.NOT_FOUND
        elif current.status == target:
            outcome = TransitionOutcome.ALREADY_APPLIED
        else:
            outcome = TransitionOutcome.CONFLICT

        logger.info(
            "Order %s not moved to %s: %s (current status %s)",
            order_id,
            target.value,
            outcome.value,
            current.status.value if current else None,
        )
        return outcome

    @staticmethod
    def _now() -> str:
        return dt.datetime.now(dt.UTC).isoformat()

    def _order_to_item(self, order: Order) -> dict[str, Any]:
        """Convert Order model to DynamoDB item."""
        item: dict[str, Any] = {
            "order_id": order.order_id,
            "order_type": order.order_type.value,
            "entity_id": order.entity_id,
            "customer_email": order.customer_email,
            "customer_name": order.customer_name,
            "amount_cents": order.amount_cents,
            "currency": order.currency,
            "status": order.status.value,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
        }
        if order.stripe_session_id:
            item["stripe_session_id"] = order.stripe_session_id
        if order.ticket_code:
            item["ticket_code"] = order.ticket_code
        if order.last_error:
            item["last_error"] = order.last_error
        if order.completed_at:
            item["completed_at"] = order.completed_at.isoformat()
        if order.expired_at:
            item["expired_at"] = order.expired_at.isoformat()
        return item

    def _item_to_order(self, item: dict[str, Any]) -> Order:
        """Convert DynamoDB item to Order model."""
        return Order(
            order_id=item["order_id"],
            order_type=OrderType(item["order_type"]),
            entity_id=int(item["entity_id"]),
            customer_email=item["customer_email"],
            customer_name=item["customer_name"],
            amount_cents=int(item["amount_cents"]),
            currency=item.get("currency", "usd"),
            status=OrderStatus(item["status"]),
            stripe_session_id=item.get("stripe_session_id"),
            ticket_code=item.get("ticket_code"),
            last_error=item.get("last_error"),
            created_at=dt.datetime.fromisoformat(item["created_at"]),
            updated_at=dt.datetime.fromisoformat(item["updated_at"]),
            completed_at=(
                dt.datetime.fromisoformat(item["completed_at"])
                if item.get("completed_at")
                else None
            ),
            expired_at=(
                dt.datetime.fromisoformat(item["expired_at"])
                if item.get("expired_at")
                else None
            ),
        )
