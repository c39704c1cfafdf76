"""
Payment method providers.

Providers are registered by (service, type) of the payment methods they
handle. The registry is a closed mapping built at import time:

    (paypal, subscription) -> PaypalSubscriptionProvider
    (stripe, creditcard)   -> CreditCardProvider

Usage:
    from payments.providers import find_payment_method_provider

    provider = find_payment_method_provider(order.payment_method)
    if provider is not None and provider.is_recurring_managed_externally:
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from payments.providers.base import PaymentMethodProvider
from payments.providers.creditcard import CreditCardProvider
from payments.providers.paypal_subscription import PaypalSubscriptionProvider
from payments.state_machines import PaymentMethodService, PaymentMethodType

if TYPE_CHECKING:
    from payments.models import PaymentMethod


PROVIDERS: dict[tuple[str, str], type[PaymentMethodProvider]] = {
    (PaymentMethodService.PAYPAL, PaymentMethodType.SUBSCRIPTION): PaypalSubscriptionProvider,
    (PaymentMethodService.STRIPE, PaymentMethodType.CREDITCARD): CreditCardProvider,
}


def find_payment_method_provider(
    payment_method: PaymentMethod | None,
    **dependencies,
) -> PaymentMethodProvider | None:
    """
    Return the provider handling ``payment_method``, or None.

    Keyword arguments are passed to the provider constructor (e.g.
    ``activator=`` or ``stripe_adapter=``).
    """
    if payment_method is None:
        return None
    provider_class = PROVIDERS.get((payment_method.service, payment_method.type))
    if provider_class is None:
        return None
    return provider_class(**dependencies)


__all__ = [
    "CreditCardProvider",
    "PROVIDERS",
    "PaymentMethodProvider",
    "PaypalSubscriptionProvider",
    "find_payment_method_provider",
]
