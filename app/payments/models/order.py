"""
Order model for contributions.

An Order is a standing contribution intent from one account
(``from_collective``) to another (``collective``). One-time orders are
charged once and end up PAID. Recurring orders get a Subscription and
stay ACTIVE until cancelled.

Usage:
    from payments.models import Order

    order = Order.objects.create(
        created_by=user,
        from_collective=contributor,
        collective=collective,
        total_amount=1000,
        currency="USD",
        interval=ContributionInterval.MONTH,
        description=Order.generate_description(collective, 1000, "month", None),
    )

    order.activate()  # new -> active
    order.save()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models

from django_fsm import FSMField, transition

from collectives.models import Tier
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import ContributionInterval, OrderStatus

if TYPE_CHECKING:
    from collectives.models import Collective


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A contribution from one account to another.

    State Flow:
        NEW -> PAID (one-time charge succeeded)
        NEW/PENDING/ERROR -> ACTIVE (recurring charge established)
        NEW/PENDING/ACTIVE -> ERROR (charge or activation failed)
        any non-terminal -> CANCELLED

    Fields:
        created_by: User who placed the order
        from_collective: Contributing account
        collective: Receiving account
        tier: Contribution level (None for custom contributions)
        total_amount: Amount per charge in cents
        currency: ISO 4217 currency code (uppercase)
        interval: month, year or None for one-time orders
        status: Current FSM state
        payment_method: Credential charged for this order
        subscription: Recurring schedule (recurring orders only)
    """

    # ==========================================================================
    # Parties
    # ==========================================================================

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="User who placed the order",
    )

    from_collective = models.ForeignKey(
        "collectives.Collective",
        on_delete=models.PROTECT,
        related_name="outgoing_orders",
        help_text="Contributing account",
    )

    collective = models.ForeignKey(
        "collectives.Collective",
        on_delete=models.PROTECT,
        related_name="incoming_orders",
        help_text="Receiving account",
    )

    tier = models.ForeignKey(
        "collectives.Tier",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )

    # ==========================================================================
    # Terms
    # ==========================================================================

    total_amount = models.PositiveIntegerField(
        help_text="Amount per charge in smallest currency unit (e.g., cents)",
    )

    currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="ISO 4217 currency code (uppercase)",
    )

    interval = models.CharField(
        max_length=10,
        choices=ContributionInterval.choices,
        null=True,
        blank=True,
        help_text="Recurrence, empty for one-time orders",
    )

    quantity = models.PositiveIntegerField(default=1)

    description = models.CharField(max_length=255, blank=True, default="")

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=OrderStatus.NEW,
        choices=OrderStatus.choices,
        db_index=True,
        help_text="Current state of the order (managed by FSM)",
    )

    # ==========================================================================
    # Payment
    # ==========================================================================

    payment_method = models.ForeignKey(
        "payments.PaymentMethod",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )

    subscription = models.OneToOneField(
        "payments.Subscription",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="order",
    )

    data = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["from_collective", "status"], name="payments_or_from_co_3b7e91_idx"),
            models.Index(fields=["collective", "status"], name="payments_or_collect_a4d0c2_idx"),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.total_amount / 100:.2f} {self.currency}"
        return f"Order({self.id}, {self.status}, {amount_display})"

    @property
    def is_recurring(self) -> bool:
        return bool(self.interval)

    @staticmethod
    def generate_description(
        collective: Collective,
        amount: int,
        interval: str | None,
        tier: Tier | None,
    ) -> str:
        """
        Build the human-readable label of a contribution.

        Examples:
            "Monthly financial contribution to Babel (Backers)"
            "Financial contribution to Babel"
            "Registration to Babel (Early bird)"
        """
        tier_info = f" ({tier.name})" if tier is not None and tier.name else ""
        if interval:
            return f"{interval.capitalize()}ly financial contribution to {collective.name}{tier_info}"

        is_registration = tier is not None and tier.type == Tier.Type.TICKET
        prefix = "Registration" if is_registration else "Financial contribution"
        return f"{prefix} to {collective.name}{tier_info}"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[OrderStatus.NEW, OrderStatus.PENDING, OrderStatus.ERROR],
        target=OrderStatus.PAID,
    )
    def mark_paid(self):
        """
        Mark a one-time order as paid.

        Transition: NEW/PENDING/ERROR -> PAID

        ERROR -> PAID happens when a failed one-time charge is retried.
        """
        pass

    @transition(
        field=status,
        source=[OrderStatus.NEW, OrderStatus.PENDING, OrderStatus.ERROR],
        target=OrderStatus.ACTIVE,
    )
    def activate(self):
        """
        Mark a recurring order as active.

        Transition: NEW/PENDING/ERROR -> ACTIVE

        ERROR -> ACTIVE happens when the contributor swaps a failing
        payment method for a working one.
        """
        pass

    @transition(
        field=status,
        source=[OrderStatus.NEW, OrderStatus.PENDING, OrderStatus.ACTIVE],
        target=OrderStatus.ERROR,
    )
    def mark_error(self):
        """
        Flag the order after a failed charge or activation.

        Transition: NEW/PENDING/ACTIVE -> ERROR
        """
        pass

    @transition(
        field=status,
        source=[
            OrderStatus.NEW,
            OrderStatus.PENDING,
            OrderStatus.ACTIVE,
            OrderStatus.ERROR,
        ],
        target=OrderStatus.CANCELLED,
    )
    def cancel(self):
        """
        Cancel the contribution.

        Transition: NEW/PENDING/ACTIVE/ERROR -> CANCELLED
        """
        pass
