"""Stripe service for prices, checkout sessions and webhook verification.

Provides integration with Stripe using the v8+ StripeClient pattern.
Credentials come from the STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET
environment variables, falling back to SSM Parameter Store.
"""

import hashlib
import json
import logging
import os
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import stripe
from stripe import StripeClient

from .ssm_service import SSMService, SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_TTL_SECONDS = 1800
WEBHOOK_TOLERANCE_SECONDS = 300


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeNotConfiguredError(StripeServiceError):
    """Raised when Stripe credentials are not available."""


class WebhookSignatureError(StripeServiceError):
    """Raised when a webhook payload fails signature verification."""


def _session_to_dict(session: Any) -> dict[str, Any]:
    """Flatten a Checkout Session object into the fields the domain uses."""
    metadata = getattr(session, "metadata", None) or {}
    return {
        "session_id": session.id,
        "checkout_url": getattr(session, "url", None),
        "status": getattr(session, "status", None),
        "payment_status": getattr(session, "payment_status", None),
        "amount_total": getattr(session, "amount_total", None) or 0,
        "currency": getattr(session, "currency", None) or "usd",
        "customer_email": getattr(session, "customer_email", None),
        "metadata": dict(metadata),
    }


class StripeService:
    """Service for Stripe payment operations.

    Handles:
    - Price creation for catalog entities
    - Checkout session creation and retrieval
    - Webhook signature validation

    Usage:
        stripe_svc = get_stripe_service()
        session = stripe_svc.create_checkout_session(
            order_id="REG-3F9A0C21B7D4",
            price_id="price_123",
            customer_email="fan@example.com",
            success_url="https://example.com/success",
            cancel_url="https://example.com/cancel",
        )
    """

    def __init__(
        self,
        environment: str | None = None,
        *,
        secret_key: str | None = None,
        webhook_secret: str | None = None,
        ssm: SSMService | None = None,
    ) -> None:
        """Initialize Stripe service.

        Args:
            environment: Environment name (dev, prod). Defaults to ENVIRONMENT env var.
            secret_key: API key override. Defaults to STRIPE_SECRET_KEY, then SSM.
            webhook_secret: Signing secret override. Defaults to
                STRIPE_WEBHOOK_SECRET, then SSM.
            ssm: SSM service used when a credential is not in the environment.
        """
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._secret_key = secret_key or os.environ.get("STRIPE_SECRET_KEY")
        self._webhook_secret = webhook_secret or os.environ.get("STRIPE_WEBHOOK_SECRET")
        self._ssm = ssm
        self._client: StripeClient | None = None

    def _get_parameter(self, name: str) -> str:
        if self._ssm is None:
            self._ssm = get_ssm_service()
        path = f"/commerce/{self._environment}/stripe/{name}"
        try:
            return self._ssm.get_parameter(path)
        except SSMServiceError as e:
            raise StripeNotConfiguredError(f"Stripe {name} is not configured: {e}") from e

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Returns:
            Initialized StripeClient instance.

        Raises:
            StripeNotConfiguredError: If credentials cannot be retrieved.
        """
        if self._client is None:
            if not self._secret_key:
                self._secret_key = self._get_parameter("secret_key")
            self._client = StripeClient(self._secret_key)
            logger.info("Stripe client initialized for environment: %s", self._environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        """Get the webhook signing secret.

        Raises:
            StripeNotConfiguredError: If secret cannot be retrieved.
        """
        if not self._webhook_secret:
            self._webhook_secret = self._get_parameter("webhook_secret")
        return self._webhook_secret

    def create_price(
        self,
        *,
        title: str,
        amount_cents: int,
        currency: str,
        product_id: str | None = None,
    ) -> dict[str, str]:
        """Create a Stripe Price for a catalog entity.

        Args:
            title: Product name shown on the hosted checkout page.
            amount_cents: Unit amount in minor currency units.
            currency: ISO currency code.
            product_id: Existing Stripe Product to attach to. A new product
                is created inline when omitted.

        Returns:
            Dict with price_id and product_id.

        Raises:
            StripeServiceError: If price creation fails.
        """
        client = self._get_client()

        params: dict[str, Any] = {"unit_amount": amount_cents, "currency": currency}
        if product_id:
            params["product"] = product_id
        else:
            params["product_data"] = {"name": title}

        try:
            price = client.prices.create(params=params)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error("Stripe price creation failed: %s (code: %s)", str(e), error_code)
            raise StripeServiceError(
                f"Failed to create price: {e}",
                stripe_error_code=error_code,
            ) from e

        logger.info("Stripe price %s created for '%s' (%d cents)", price.id, title, amount_cents)
        return {"price_id": price.id, "product_id": price.product}

    def create_checkout_session(
        self,
        *,
        order_id: str,
        price_id: str,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create a Stripe Checkout session for one unit of a price.

        Args:
            order_id: Order ID (used as idempotency key).
            price_id: Stripe Price ID to charge.
            customer_email: Customer email for the Stripe receipt.
            success_url: URL to redirect on success (supports {CHECKOUT_SESSION_ID}).
            cancel_url: URL to redirect on cancel.
            metadata: Additional metadata to include.

        Returns:
            Dict with session details (session_id, checkout_url, status,
            payment_status, amount_total, currency, customer_email, metadata).

        Raises:
            StripeServiceError: If session creation fails.
        """
        client = self._get_client()

        session_metadata = {"order_id": order_id}
        if metadata:
            session_metadata.update(metadata)

        try:
            logger.info("Creating Stripe checkout session for order %s", order_id)
            session = client.checkout.sessions.create(
                params={
                    "mode": "payment",
                    "line_items": [{"price": price_id, "quantity": 1}],
                    "success_url": success_url,
                    "cancel_url": cancel_url,
                    "metadata": session_metadata,
                    "customer_email": customer_email,
                    "expires_at": int(datetime.now(timezone.utc).timestamp())
                    + CHECKOUT_SESSION_TTL_SECONDS,
                },
                options={"idempotency_key": f"checkout_{order_id}"},
            )
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe checkout session creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create checkout session: {e}",
                stripe_error_code=error_code,
            ) from e

        logger.info("Checkout session created: %s for order %s", session.id, order_id)
        return _session_to_dict(session)

    def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        """Retrieve a Checkout session from Stripe.

        Raises:
            StripeServiceError: If the session cannot be retrieved.
        """
        client = self._get_client()
        try:
            session = client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.warning(
                "Stripe checkout session retrieval failed for %s: %s (code: %s)",
                session_id,
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to retrieve checkout session: {e}",
                stripe_error_code=error_code,
            ) from e
        return _session_to_dict(session)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event dictionary.

        Raises:
            WebhookSignatureError: If the signature is invalid or the body
                is not a JSON event.
            StripeNotConfiguredError: If the signing secret is unavailable.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                webhook_secret,
                WEBHOOK_TOLERANCE_SECONDS,
            )
            event = json.loads(payload)
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise WebhookSignatureError("Invalid webhook signature") from e
        except ValueError as e:
            logger.warning("Webhook payload is not valid JSON: %s", str(e))
            raise WebhookSignatureError("Invalid webhook payload") from e

        if not isinstance(event, dict) or "id" not in event or "type" not in event:
            raise WebhookSignatureError("Invalid webhook payload")

        logger.info("Webhook signature verified for event: %s", event["id"])
        return event

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of webhook payload for auditing.

        Args:
            payload: Raw webhook payload bytes.

        Returns:
            Hex-encoded SHA-256 hash.
        """
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance (singleton pattern).

    Returns:
        StripeService: Shared service instance.
    """
    return StripeService()
