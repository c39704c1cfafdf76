"""
Abstract base for payment method providers.

A provider knows how to process orders paid with one kind of payment
method (a PayPal subscription, a Stripe card...). Each provider declares
its features so callers can reason about recurring orders without
knowing the provider:

    recurring: Whether the provider can charge repeatedly
    is_recurring_managed_externally: Whether the provider, not us,
        schedules recurring charges

Usage:
    class MyProvider(PaymentMethodProvider):
        recurring = True
        is_recurring_managed_externally = False

        def process_order(self, order):
            ...
            return order
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from payments.models import Order


class PaymentMethodProvider(ABC):
    """
    Abstract base class for payment method providers.

    Subclasses must declare their features and implement process_order.
    """

    recurring: ClassVar[bool] = False
    is_recurring_managed_externally: ClassVar[bool] = False

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @abstractmethod
    def process_order(self, order: Order) -> Order:
        """
        Charge or set up the charges of ``order`` with its payment method.

        Returns:
            The updated order

        Raises:
            PaymentError: If the order cannot be processed
        """
