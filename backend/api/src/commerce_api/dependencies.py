"""FastAPI dependency injection providers for shared services.

This module provides factory functions for service instances using @lru_cache
so each process builds its services once. Services are lazily instantiated
and receive their collaborators through their constructors.

Usage in routes:
    from commerce_api.dependencies import get_checkout_service

    @router.post("/checkout/events")
    async def checkout_event(
        checkout: CheckoutService = Depends(get_checkout_service),
    ):
        ...

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── CatalogService
        ├── OrderStore
        │       ├── CheckoutService (+ CatalogService, StripeService)
        │       ├── WebhookHandler (+ CatalogService)
        │       ├── SuccessVerifier (+ StripeService)
        │       └── ReconciliationService (+ CatalogService, StripeService)
    StripeService (singleton via get_stripe_service)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from commerce.services.catalog_service import CatalogService
from commerce.services.checkout_service import CheckoutService
from commerce.services.dynamodb import get_dynamodb_service
from commerce.services.order_store import OrderStore
from commerce.services.reconciliation import ReconciliationService
from commerce.services.stripe_service import get_stripe_service
from commerce.services.success_verifier import SuccessVerifier
from commerce.services.webhook_handler import WebhookHandler


@lru_cache
def get_catalog_service() -> CatalogService:
    """Get cached CatalogService instance.

    Returns:
        CatalogService configured with DynamoDB singleton.
    """
    return CatalogService(db=get_dynamodb_service())


@lru_cache
def get_order_store() -> OrderStore:
    """Get cached OrderStore instance.

    Returns:
        OrderStore configured with DynamoDB singleton.
    """
    return OrderStore(db=get_dynamodb_service())


@lru_cache
def get_checkout_service() -> CheckoutService:
    """Get cached CheckoutService instance.

    Returns:
        CheckoutService configured with catalog, order store and Stripe.
    """
    return CheckoutService(
        catalog=get_catalog_service(),
        orders=get_order_store(),
        stripe_service=get_stripe_service(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler instance."""
    return WebhookHandler(
        db=get_dynamodb_service(),
        orders=get_order_store(),
        catalog=get_catalog_service(),
    )


@lru_cache
def get_success_verifier() -> SuccessVerifier:
    """Get cached SuccessVerifier instance."""
    return SuccessVerifier(stripe_service=get_stripe_service(), orders=get_order_store())


@lru_cache
def get_reconciliation_service() -> ReconciliationService:
    """Get cached ReconciliationService instance."""
    return ReconciliationService(
        orders=get_order_store(),
        catalog=get_catalog_service(),
        stripe_service=get_stripe_service(),
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB and Stripe singletons.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    from commerce.services.dynamodb import reset_dynamodb_service
    from commerce.services.ssm_service import get_ssm_service

    get_catalog_service.cache_clear()
    get_order_store.cache_clear()
    get_checkout_service.cache_clear()
    get_webhook_handler.cache_clear()
    get_success_verifier.cache_clear()
    get_reconciliation_service.cache_clear()

    get_stripe_service.cache_clear()
    get_ssm_service.cache_clear()
    reset_dynamodb_service()
