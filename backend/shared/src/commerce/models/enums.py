"""Enumeration types for commerce data models."""

from enum import Enum


class OrderType(str, Enum):
    """Kind of entity an order is linked to."""

    REGISTRATION = "registration"
    PURCHASE = "purchase"


class OrderStatus(str, Enum):
    """Lifecycle status of an order record.

    FAILED is part of the stored vocabulary but nothing transitions
    into it; failed payment intents cannot be correlated to an order.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"
    FAILED = "failed"


class TransitionOutcome(str, Enum):
    """Result of a conditional status transition on an order."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


class WebhookProcessingResult(str, Enum):
    """Result recorded for a received webhook event."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    SKIPPED = "skipped"
    IGNORED = "ignored"
    ERROR = "error"
