#!/usr/bin/env python3
"""Seed development database with sample events and products.

Populates the events and products tables so the checkout flow can be
exercised locally:
- A paid event with limited capacity
- A free event
- An unlimited paid event
- A couple of merchandise products

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --clear-first
    python scripts/seed_data.py --env dev --products-only
"""

import argparse
import os
import sys
from datetime import UTC, datetime, timedelta

import boto3

# Global region setting (set by main() from args)
_AWS_REGION: str | None = None


def get_dynamodb_resource():
    """Get DynamoDB resource with configured region."""
    if _AWS_REGION:
        return boto3.resource("dynamodb", region_name=_AWS_REGION)
    return boto3.resource("dynamodb")


def get_table_name(env: str, table: str) -> str:
    """Get full table name with environment prefix."""
    prefix = os.environ.get("DYNAMODB_TABLE_PREFIX", f"commerce-{env}")
    return f"{prefix}-{table}"


def sample_events(now: datetime) -> list[dict]:
    """Build sample event records starting a few weeks from now."""
    return [
        {
            "event_id": 1,
            "title": "Spring Gallery Opening",
            "slug": "spring-gallery-opening",
            "venue": "Harbor Arts Center",
            "location": "Portland, OR",
            "start_date": (now + timedelta(days=21)).isoformat(),
            "published": True,
            "is_free": False,
            "ticket_price_cents": 2500,
            "max_attendees": 40,
            "registration_count": 0,
        },
        {
            "event_id": 2,
            "title": "Community Open Studio",
            "slug": "community-open-studio",
            "venue": "Studio 4",
            "location": "Portland, OR",
            "start_date": (now + timedelta(days=10)).isoformat(),
            "published": True,
            "is_free": True,
            "max_attendees": 25,
            "registration_count": 0,
        },
        {
            "event_id": 3,
            "title": "Summer Benefit Concert",
            "slug": "summer-benefit-concert",
            "venue": "Riverside Park",
            "location": "Portland, OR",
            "start_date": (now + timedelta(days=60)).isoformat(),
            "published": True,
            "is_free": False,
            "ticket_price_cents": 4000,
            "registration_count": 0,
        },
    ]


def sample_products() -> list[dict]:
    """Build sample merchandise product records."""
    return [
        {"product_id": 1, "title": "Tour Poster", "price_cents": 1800, "published": True},
        {"product_id": 2, "title": "Logo Tee", "price_cents": 3000, "published": True},
        {"product_id": 3, "title": "Sticker Pack", "price_cents": 0, "published": True},
    ]


def put_items(env: str, table_suffix: str, items: list[dict], label: str) -> int:
    """Write items to a table, printing one line per item."""
    table = get_dynamodb_resource().Table(get_table_name(env, table_suffix))
    print(f"Seeding {table_suffix} table: {table.name}")

    with table.batch_writer() as batch:
        for item in items:
            batch.put_item(Item=item)
            print(f"  ✓ {item[label]}")

    return len(items)


def clear_table(env: str, table_suffix: str) -> int:
    """Clear all items from a table.

    Returns:
        Number of items deleted
    """
    table = get_dynamodb_resource().Table(get_table_name(env, table_suffix))
    key_attrs = [k["AttributeName"] for k in table.key_schema]

    deleted = 0
    scan_kwargs: dict = {}
    while True:
        response = table.scan(**scan_kwargs)
        items = response.get("Items", [])
        with table.batch_writer() as batch:
            for item in items:
                batch.delete_item(Key={k: item[k] for k in key_attrs})
        deleted += len(items)
        if "LastEvaluatedKey" not in response:
            return deleted
        scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]


def main() -> int:
    """Run the seed script."""
    global _AWS_REGION

    parser = argparse.ArgumentParser(description="Seed development database with catalog data")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "us-west-2"),
        help="AWS region (default: us-west-2 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--products-only",
        action="store_true",
        help="Only seed products",
    )
    parser.add_argument(
        "--clear-first",
        action="store_true",
        help="Clear existing catalog data before seeding",
    )

    args = parser.parse_args()
    _AWS_REGION = args.region

    if args.env == "prod":
        confirm = input("WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    print(f"\nSeeding {args.env} environment (region: {args.region})\n")

    tables = ["products"] if args.products_only else ["events", "products"]

    if args.clear_first:
        print("Clearing existing data...")
        for table in tables:
            count = clear_table(args.env, table)
            print(f"  Cleared {count} items from {table}")
        print()

    try:
        if not args.products_only:
            put_items(args.env, "events", sample_events(datetime.now(UTC)), "title")
            print()
        put_items(args.env, "products", sample_products(), "title")
    except Exception as e:
        print(f"  Failed to seed catalog: {e}")
        return 1

    print("\nSeed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
