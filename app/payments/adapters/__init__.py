"""
Payment adapters for external services.

This module provides adapters for the payment backends: the PayPal REST
API (subscriptions, catalog) and Stripe (credit card charges). All
external payment API calls should go through these adapters to ensure
consistent error handling, timeouts, idempotency, and observability.

Usage:
    from payments.adapters import PaypalGateway

    gateway = PaypalGateway.from_settings()
    gateway.call("catalogs/products", payload, host)
"""

from payments.adapters.paypal_gateway import PaypalGateway
from payments.adapters.stripe_adapter import (
    ChargeParams,
    IdempotencyKeyGenerator,
    PaymentIntentResult,
    StripeAdapter,
)

__all__ = [
    "ChargeParams",
    "IdempotencyKeyGenerator",
    "PaymentIntentResult",
    "PaypalGateway",
    "StripeAdapter",
]
