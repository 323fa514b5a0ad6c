#!/usr/bin/env python3
"""Reconcile pending orders whose Stripe webhook never arrived.

Checks every pending order older than the given age against its Stripe
Checkout Session and moves it to completed or expired. Orders that never
got a session are expired and their event capacity released.

Meant to run on a schedule (cron, EventBridge) as well as by hand.

Usage:
    python scripts/reconcile_orders.py --env dev
    python scripts/reconcile_orders.py --env dev --older-than-minutes 90
"""

import argparse
import os
import sys
from datetime import timedelta

from commerce.services.catalog_service import CatalogService
from commerce.services.dynamodb import DynamoDBService
from commerce.services.order_store import OrderStore
from commerce.services.reconciliation import ReconciliationService
from commerce.services.stripe_service import StripeService
from commerce.utils.logging import configure_logging


def build_service(env: str) -> ReconciliationService:
    """Wire the reconciliation service for an environment."""
    db = DynamoDBService(env)
    return ReconciliationService(
        orders=OrderStore(db),
        catalog=CatalogService(db),
        stripe_service=StripeService(env),
    )


def main() -> int:
    """Run one reconciliation sweep."""
    parser = argparse.ArgumentParser(description="Reconcile stale pending orders with Stripe")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default=os.environ.get("ENVIRONMENT", "dev"),
        help="Target environment (default: ENVIRONMENT env var or dev)",
    )
    parser.add_argument(
        "--older-than-minutes",
        type=int,
        default=60,
        help="Only reconcile orders older than this (default: 60, above the 30 minute session lifetime)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    report = build_service(args.env).sweep(timedelta(minutes=args.older_than_minutes))

    print(
        f"Scanned {report.scanned} pending orders: "
        f"{report.completed} completed, {report.expired} expired, "
        f"{report.still_open} still open, {report.errors} errors"
    )
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
