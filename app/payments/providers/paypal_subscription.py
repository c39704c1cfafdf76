"""
PayPal subscription provider.

PayPal subscriptions are recurring charges that PayPal schedules on its
own. Processing an order means attaching the approved subscription to
it and activating it; PayPal then charges the contributor every period.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from payments.adapters import PaypalGateway
from payments.providers.base import PaymentMethodProvider
from payments.services.subscription_activation import PaypalSubscriptionActivator

if TYPE_CHECKING:
    from payments.models import Order


class PaypalSubscriptionProvider(PaymentMethodProvider):
    """
    Provider for payment methods of service=paypal, type=subscription.

    Args:
        activator: Subscription activator (default: built from settings on first use)
    """

    recurring = True
    is_recurring_managed_externally = True

    def __init__(self, activator: PaypalSubscriptionActivator | None = None):
        self._activator = activator

    @property
    def activator(self) -> PaypalSubscriptionActivator:
        if self._activator is None:
            self._activator = PaypalSubscriptionActivator(gateway=PaypalGateway.from_settings())
        return self._activator

    def process_order(self, order: Order) -> Order:
        return self.activator.activate(order, order.payment_method)
