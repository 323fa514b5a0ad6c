"""API-specific request/response models.

Domain models (Order, Event, Product) live in commerce.models; this package
holds the HTTP layer's request bodies and camelCase response schemas.

Modules:
- common: Error response wrappers and validation error formatting
- checkout: Checkout, webhook, confirmation and order status models
"""

__all__: list[str] = []
