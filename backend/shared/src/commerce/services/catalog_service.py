"""Catalog service for events and products.

Reads the sellable entities, keeps their cached Stripe prices, and
manages event capacity with atomic counter updates.
"""

import datetime as dt
import logging
from typing import TYPE_CHECKING, Any

from commerce.models import Event, Product

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = logging.getLogger(__name__)


def _parse_datetime(value: str | None) -> dt.datetime | None:
    """Parse an ISO timestamp, treating naive values as UTC."""
    if not value:
        return None
    parsed = dt.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


class CatalogService:
    """Service for catalog lookups, price caching and capacity."""

    EVENTS_TABLE = "events"
    PRODUCTS_TABLE = "products"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize catalog service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def get_event(self, event_id: int) -> Event | None:
        """Get an event by ID, or None if it does not exist."""
        item = self.db.get_item(self.EVENTS_TABLE, {"event_id": event_id})
        return self._item_to_event(item) if item else None

    def get_product(self, product_id: int) -> Product | None:
        """Get a product by ID, or None if it does not exist."""
        item = self.db.get_item(self.PRODUCTS_TABLE, {"product_id": product_id})
        return self._item_to_product(item) if item else None

    def reserve_event_slot(self, event_id: int, max_attendees: int) -> bool:
        """Atomically take one capacity slot on an event.

        The counter is only incremented while it is below max_attendees,
        so concurrent checkouts can never oversell.

        Args:
            event_id: Event ID
            max_attendees: Capacity of the event

        Returns:
            True if a slot was reserved, False if the event is full
        """
        result = self.db.update_item(
            self.EVENTS_TABLE,
            {"event_id": event_id},
            "SET registration_count = if_not_exists(registration_count, :zero) + :one",
            {":zero": 0, ":one": 1, ":max": max_attendees},
            condition_expression=(
                "attribute_exists(event_id) AND "
                "(attribute_not_exists(registration_count) OR registration_count < :max)"
            ),
        )
        if result is None:
            logger.info("Event %s is full (capacity %d)", event_id, max_attendees)
            return False
        logger.info(
            "Reserved slot on event %s (%s/%d)",
            event_id,
            result.get("registration_count"),
            max_attendees,
        )
        return True

    def release_event_slot(self, event_id: int) -> bool:
        """Give back one capacity slot; never drops below zero.

        Returns:
            True if a slot was released
        """
        result = self.db.update_item(
            self.EVENTS_TABLE,
            {"event_id": event_id},
            "SET registration_count = registration_count - :one",
            {":zero": 0, ":one": 1},
            condition_expression="registration_count > :zero",
        )
        if result is None:
            logger.warning("No slot to release on event %s", event_id)
            return False
        logger.info("Released slot on event %s", event_id)
        return True

    def release_event_slot_item(self, event_id: int) -> dict[str, Any]:
        """Build the slot release as a TransactItems entry.

        Same update and condition as release_event_slot, for callers that
        must release together with another write.
        """
        return {
            "Update": {
                "TableName": self.db._table_name(self.EVENTS_TABLE),
                "Key": {"event_id": {"N": str(event_id)}},
                "UpdateExpression": "SET registration_count = registration_count - :one",
                "ConditionExpression": "registration_count > :zero",
                "ExpressionAttributeValues": {
                    ":zero": {"N": "0"},
                    ":one": {"N": "1"},
                },
            }
        }

    def save_stripe_price(
        self,
        table: str,
        key: dict[str, Any],
        *,
        price_id: str,
        product_id: str,
        amount_cents: int,
        previous_price_id: str | None,
    ) -> bool:
        """Persist a newly created Stripe price on a catalog entity.

        The write only succeeds while the entity still holds the price the
        caller saw, so two concurrent checkouts do not overwrite each other.

        Args:
            table: EVENTS_TABLE or PRODUCTS_TABLE
            key: Primary key of the entity
            price_id: New Stripe Price ID
            product_id: Stripe Product ID
            amount_cents: Amount the price was created for
            previous_price_id: Price ID read before the price was created

        Returns:
            True if stored, False if another writer got there first
        """
        if previous_price_id:
            condition = "stripe_price_id = :previous"
            values: dict[str, Any] = {":previous": previous_price_id}
        else:
            condition = "attribute_not_exists(stripe_price_id)"
            values = {}

        values.update(
            {
                ":price": price_id,
                ":product": product_id,
                ":amount": amount_cents,
            }
        )
        result = self.db.update_item(
            table,
            key,
            "SET stripe_price_id = :price, stripe_product_id = :product, "
            "stripe_price_cents = :amount",
            values,
            condition_expression=condition,
        )
        return result is not None

    def _item_to_event(self, item: dict[str, Any]) -> Event:
        """Convert DynamoDB item to Event model."""
        return Event(
            event_id=int(item["event_id"]),
            title=item["title"],
            slug=item.get("slug", ""),
            venue=item.get("venue"),
            location=item.get("location"),
            start_date=_parse_datetime(item.get("start_date")),
            published=bool(item.get("published", True)),
            deleted_at=_parse_datetime(item.get("deleted_at")),
            is_free=bool(item.get("is_free", False)),
            ticket_price_cents=_optional_int(item.get("ticket_price_cents")),
            max_attendees=_optional_int(item.get("max_attendees")),
            registration_count=int(item.get("registration_count", 0)),
            stripe_price_id=item.get("stripe_price_id"),
            stripe_product_id=item.get("stripe_product_id"),
            stripe_price_cents=_optional_int(item.get("stripe_price_cents")),
        )

    def _item_to_product(self, item: dict[str, Any]) -> Product:
        """Convert DynamoDB item to Product model."""
        return Product(
            product_id=int(item["product_id"]),
            title=item["title"],
            price_cents=int(item.get("price_cents", 0)),
            published=bool(item.get("published", True)),
            stripe_price_id=item.get("stripe_price_id"),
            stripe_product_id=item.get("stripe_product_id"),
            stripe_price_cents=_optional_int(item.get("stripe_price_cents")),
        )
