"""
State machine enums and choices for payment models.

This module defines the enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    ContributionInterval,
    OrderStatus,
    PaymentMethodService,
    PaymentMethodType,
)

__all__ = [
    "ContributionInterval",
    "OrderStatus",
    "PaymentMethodService",
    "PaymentMethodType",
]
