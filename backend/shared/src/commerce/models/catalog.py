"""Catalog entities that can be checked out: events and products."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """A ticketed event.

    Prices are stored in minor currency units (cents).
    """

    model_config = ConfigDict(strict=True)

    event_id: int = Field(..., gt=0, description="Event ID")
    title: str = Field(..., description="Event title")
    slug: str = Field(..., description="URL slug")
    venue: str | None = Field(default=None, description="Venue name")
    location: str | None = Field(default=None, description="City or address")
    start_date: datetime | None = Field(default=None, description="Event start")
    published: bool = Field(default=True, description="Visible on the site")
    deleted_at: datetime | None = Field(default=None, description="Soft delete timestamp")
    is_free: bool = Field(default=False, description="Free registration")
    ticket_price_cents: int | None = Field(default=None, ge=0, description="Ticket price in cents")
    max_attendees: int | None = Field(default=None, ge=0, description="Capacity, None for unlimited")
    registration_count: int = Field(default=0, ge=0, description="Reserved slots")

    stripe_price_id: str | None = Field(
        default=None,
        description="Cached Stripe Price ID (price_xxx)",
        examples=["price_1ABC123DEF456"],
    )
    stripe_product_id: str | None = Field(default=None, description="Stripe Product ID")
    stripe_price_cents: int | None = Field(
        default=None,
        description="Amount the cached Stripe price was created for",
    )

    @property
    def price_cents(self) -> int:
        """Effective ticket price; zero for free events."""
        if self.is_free or not self.ticket_price_cents:
            return 0
        return self.ticket_price_cents

    @property
    def is_capacity_limited(self) -> bool:
        return self.max_attendees is not None


class Product(BaseModel):
    """A merchandise product."""

    model_config = ConfigDict(strict=True)

    product_id: int = Field(..., gt=0, description="Product ID")
    title: str = Field(..., description="Product title")
    price_cents: int = Field(..., ge=0, description="Price in cents")
    published: bool = Field(default=True, description="Available for sale")

    stripe_price_id: str | None = Field(default=None, description="Cached Stripe Price ID")
    stripe_product_id: str | None = Field(default=None, description="Stripe Product ID")
    stripe_price_cents: int | None = Field(default=None, description="Cached price amount")
