"""Backend services for event registrations and merchandise checkout."""

from .catalog_service import CatalogService
from .checkout_service import CheckoutService
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .order_store import OrderStore, generate_order_id
from .reconciliation import ReconciliationService
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import (
    StripeNotConfiguredError,
    StripeService,
    StripeServiceError,
    WebhookSignatureError,
    get_stripe_service,
)
from .success_verifier import SuccessVerifier
from .webhook_handler import WebhookHandler

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "CatalogService",
    "CheckoutService",
    "OrderStore",
    "generate_order_id",
    "ReconciliationService",
    "SuccessVerifier",
    "WebhookHandler",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeService",
    "StripeServiceError",
    "StripeNotConfiguredError",
    "WebhookSignatureError",
    "get_stripe_service",
]
