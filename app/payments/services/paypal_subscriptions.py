"""
Helpers for PayPal subscription payment methods.

A PayPal subscription is stored as a PaymentMethod whose token is the
PayPal subscription id. These helpers create such payment methods,
recognize them, and cancel the subscription behind an order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payments.models import PaymentMethod
from payments.state_machines import PaymentMethodService, PaymentMethodType

if TYPE_CHECKING:
    from authentication.models import User

    from payments.adapters import PaypalGateway
    from payments.models import Order

logger = logging.getLogger(__name__)


def is_paypal_subscription_payment_method(payment_method: PaymentMethod | None) -> bool:
    return (
        payment_method is not None
        and payment_method.service == PaymentMethodService.PAYPAL
        and payment_method.type == PaymentMethodType.SUBSCRIPTION
    )


def create_paypal_payment_method_for_subscription(
    order: Order,
    user: User,
    paypal_subscription_id: str,
) -> PaymentMethod:
    """Store the PayPal subscription approved by ``user`` as a payment method of the contributor."""
    return PaymentMethod.objects.create(
        service=PaymentMethodService.PAYPAL,
        type=PaymentMethodType.SUBSCRIPTION,
        created_by=user,
        collective_id=order.from_collective_id,
        currency=order.currency,
        saved=False,
        token=paypal_subscription_id,
    )


def cancel_paypal_subscription(
    gateway: PaypalGateway,
    order: Order,
    reason: str | None = None,
) -> None:
    """
    Cancel the PayPal subscription currently attached to ``order``.

    Raises:
        GatewayError: If PayPal rejects or fails the cancellation
    """
    subscription = order.subscription
    if subscription is None or not subscription.paypal_subscription_id:
        logger.info(
            "No PayPal subscription to cancel",
            extra={"order_id": str(order.id)},
        )
        return

    host = order.collective.get_host_collective()
    gateway.cancel_subscription(host, subscription.paypal_subscription_id, reason=reason)
    logger.info(
        "PayPal subscription cancelled",
        extra={
            "order_id": str(order.id),
            "paypal_subscription_id": subscription.paypal_subscription_id,
        },
    )
