"""
State and choice enums for payment models.

These are Django TextChoices for database storage and admin integration.
OrderStatus is driven by django-fsm transitions on the Order model.

State Machines Overview:

Order Status:
    new → paid (one-time charge succeeded)
    new/pending/error → active (recurring charge established)
    new/pending/active → error (charge or activation failed)
    new/pending/active/error → cancelled
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """
    States for the Order lifecycle.

    Terminal states: PAID, CANCELLED

    State Flow (one-time):
        NEW → PAID

    State Flow (recurring):
        NEW → ACTIVE → CANCELLED

    Recovery Flow:
        ACTIVE → ERROR → ACTIVE (payment method swapped or charge retried)
    """

    NEW = "NEW", "New"
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    ACTIVE = "ACTIVE", "Active"
    ERROR = "ERROR", "Error"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentMethodService(models.TextChoices):
    """Payment backend a payment method is served by."""

    PAYPAL = "paypal", "PayPal"
    STRIPE = "stripe", "Stripe"


class PaymentMethodType(models.TextChoices):
    """
    Kind of credential held by a payment method.

    SUBSCRIPTION: the token is a provider-side subscription id
    CREDITCARD: the token is a provider-side card/payment method id
    """

    SUBSCRIPTION = "subscription", "Subscription"
    CREDITCARD = "creditcard", "Credit Card"


class ContributionInterval(models.TextChoices):
    """Recurrence of a contribution. One-time orders store no interval."""

    MONTH = "month", "Monthly"
    YEAR = "year", "Yearly"


__all__ = [
    "ContributionInterval",
    "OrderStatus",
    "PaymentMethodService",
    "PaymentMethodType",
]
