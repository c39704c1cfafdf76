"""
Stripe API adapter for credit card charges.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, timeouts, idempotency,
and observability.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Idempotency support for safe retries

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Max network retries done by the SDK (default: 3)

Usage:
    from payments.adapters import ChargeParams, IdempotencyKeyGenerator, StripeAdapter

    result = StripeAdapter().charge(
        ChargeParams(
            amount_cents=5000,
            currency="usd",
            payment_method_id="pm_xxx",
            idempotency_key=IdempotencyKeyGenerator.generate("charge", order.id),
        )
    )
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class ChargeParams:
    """
    Parameters for charging a saved card with a confirmed PaymentIntent.

    Attributes:
        amount_cents: Payment amount in smallest currency unit (e.g., cents)
        currency: ISO 4217 currency code
        payment_method_id: Stripe PaymentMethod ID (pm_xxx)
        idempotency_key: Unique key for idempotent creation
        customer_id: Optional Stripe Customer ID owning the card
        description: Statement description
        metadata: Key-value pairs to attach to the PaymentIntent
    """

    amount_cents: int
    currency: str
    payment_method_id: str
    idempotency_key: str
    customer_id: str | None = None
    description: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")
        if not self.payment_method_id:
            raise ValueError("payment_method_id is required")


@dataclass
class PaymentIntentResult:
    """
    Result from Stripe PaymentIntent operations.

    Attributes:
        id: PaymentIntent ID (pi_xxx)
        status: Current status (succeeded, requires_action, etc.)
        amount_cents: Amount in cents
        currency: Currency code
        metadata: Attached metadata
        raw_response: Full Stripe response dict (for debugging)
    """

    id: str
    status: str
    amount_cents: int
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="charge",
            entity_id=order.id,
            attempt=1,
        )
        # Result: "charge:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        # Short hash salted with SECRET_KEY
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    Holds no state besides configuration, so a single instance can be
    shared by every provider.
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 3)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    def charge(self, params: ChargeParams) -> PaymentIntentResult:
        """
        Charge a saved card off-session.

        Args:
            params: Parameters for the charge

        Returns:
            PaymentIntentResult with the confirmed PaymentIntent

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidRequestError: Invalid parameters
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: Stripe service unavailable
        """
        self._configure_stripe()
        logger = self.get_logger()

        log_context = {
            "operation": "charge",
            "amount_cents": params.amount_cents,
            "currency": params.currency,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.create(
                amount=params.amount_cents,
                currency=params.currency.lower(),
                payment_method=params.payment_method_id,
                customer=params.customer_id,
                description=params.description,
                metadata=params.metadata,
                confirm=True,
                off_session=True,
                idempotency_key=params.idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "payment_intent_id": intent.id,
                "status": intent.status,
                "duration_ms": duration_ms,
            },
        )

        return PaymentIntentResult(
            id=intent.id,
            status=intent.status,
            amount_cents=intent.amount,
            currency=intent.currency,
            metadata=dict(intent.metadata or {}),
            raw_response=intent.to_dict(),
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidRequestError: Invalid request or authentication
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: API unavailable or unknown error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise StripeCardDeclinedError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=decline_code,
            ) from error

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(
                str(error),
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        else:
            logger.error(
                "Unexpected error from Stripe",
                extra={**log_context, "error_type": type(error).__name__},
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            ) from error
