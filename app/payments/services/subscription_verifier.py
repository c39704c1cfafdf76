"""
Verification of contributor-created PayPal subscriptions.

Contributors approve PayPal subscriptions in their browser, then send us
the subscription id. Nothing stops a malicious contributor from creating
a subscription on a cheaper plan of their own and claiming it pays for a
more expensive tier, so we only trust subscriptions billed against a
plan we created for the order's collective and tier, at the order's
amount.

Usage:
    verifier = PaypalSubscriptionVerifier()
    verifier.verify(order, gateway.get_subscription(host, subscription_id))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from payments.exceptions import VerificationError
from payments.models import PaypalPlan

if TYPE_CHECKING:
    from payments.models import Order


APPROVED_STATUS = "APPROVED"


class PaypalSubscriptionVerifier:
    """Checks a PayPal subscription against the order it should pay for."""

    def verify(self, order: Order, paypal_subscription: dict[str, Any]) -> None:
        """
        Raise VerificationError unless ``paypal_subscription`` can pay for ``order``.

        Checks, in order: the subscription is approved, its plan belongs to
        the order's collective and tier, and the plan amount equals the
        order amount. The interval is not compared.

        Has no side effects.
        """
        subscription_id = paypal_subscription.get("id")
        status = str(paypal_subscription.get("status") or "")
        if status.upper() != APPROVED_STATUS:
            raise VerificationError(
                "Subscription must be approved to be activated",
                error_code="SUBSCRIPTION_NOT_APPROVED",
                details={"subscription_id": subscription_id, "status": status},
            )

        plan = (
            PaypalPlan.objects.filter(
                id=paypal_subscription.get("plan_id"),
                product__collective_id=order.collective_id,
                product__tier_id=order.tier_id,
            )
            .select_related("product")
            .first()
        )
        if plan is None:
            raise VerificationError(
                f"PayPal plan does not match the subscription (#{subscription_id})",
                error_code="SUBSCRIPTION_PLAN_MISMATCH",
                details={
                    "subscription_id": subscription_id,
                    "plan_id": paypal_subscription.get("plan_id"),
                },
            )

        if plan.amount != order.total_amount:
            raise VerificationError(
                "The plan amount does not match the order amount",
                error_code="SUBSCRIPTION_AMOUNT_MISMATCH",
                details={
                    "plan_id": plan.id,
                    "plan_amount": plan.amount,
                    "order_amount": order.total_amount,
                },
            )
