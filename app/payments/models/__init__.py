"""
Payment domain models.

This module contains all payment-related models:
- Order: A one-time or recurring contribution between two accounts
- Subscription: Recurring charge schedule of an order
- PaymentMethod: Credential used to pay for orders
- ConnectedAccount: Provider credentials of fiscal hosts
- PaypalProduct/PaypalPlan: Local mirror of the PayPal catalog
"""

from payments.models.connected_account import ConnectedAccount
from payments.models.order import Order
from payments.models.payment_method import PaymentMethod
from payments.models.paypal import PaypalPlan, PaypalProduct
from payments.models.subscription import Subscription

__all__ = [
    "ConnectedAccount",
    "Order",
    "PaymentMethod",
    "PaypalPlan",
    "PaypalProduct",
    "Subscription",
]
