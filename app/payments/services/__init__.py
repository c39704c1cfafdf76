"""
Payment services for recurring contributions.

This module provides:
- PaypalPlanResolver: Finds or creates PayPal products and plans
- PaypalSubscriptionVerifier: Checks contributor-created PayPal subscriptions
- PaypalSubscriptionActivator: Attaches and activates PayPal subscriptions
- SubscriptionService: Payment method, amount/tier and cancellation changes

Usage:
    from payments.adapters import PaypalGateway
    from payments.services import PaypalPlanResolver, SubscriptionService

    gateway = PaypalGateway.from_settings()

    plan = PaypalPlanResolver(gateway).get_or_create_plan(
        collective, "month", 1000, "USD", tier=tier
    )

    service = SubscriptionService(gateway=gateway)
    service.update_subscription_with_paypal(user, order, "I-BW452GLLEP1G")
"""

from payments.services.paypal_subscriptions import (
    cancel_paypal_subscription,
    create_paypal_payment_method_for_subscription,
    is_paypal_subscription_payment_method,
)
from payments.services.plan_resolver import PaypalPlanResolver
from payments.services.subscription_activation import (
    PaypalSubscriptionActivator,
    SubscriptionSnapshot,
)
from payments.services.subscription_service import (
    MINIMUM_CONTRIBUTION_AMOUNT,
    SubscriptionService,
)
from payments.services.subscription_verifier import PaypalSubscriptionVerifier

__all__ = [
    "MINIMUM_CONTRIBUTION_AMOUNT",
    "PaypalPlanResolver",
    "PaypalSubscriptionActivator",
    "PaypalSubscriptionVerifier",
    "SubscriptionService",
    "SubscriptionSnapshot",
    "cancel_paypal_subscription",
    "create_paypal_payment_method_for_subscription",
    "is_paypal_subscription_payment_method",
]
