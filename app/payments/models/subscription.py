"""
Subscription model for recurring contribution schedules.

A Subscription is paired 1:1 with a recurring Order. When the schedule
is externally managed (PayPal subscriptions), the provider charges the
contributor and the schedule fields here are advisory only. When it is
internally managed (credit cards), ``next_charge_date`` drives charging.

Subscriptions are never deleted: cancelling one deactivates it.

Usage:
    from payments.models import Subscription

    subscription = Subscription.objects.create(
        amount=1000,
        currency="USD",
        interval=ContributionInterval.MONTH,
        is_managed_externally=True,
        paypal_subscription_id="I-BW452GLLEP1G",
        charge_number=0,
        next_charge_date=now,
        next_period_start=now,
    )

    subscription.deactivate()
    subscription.save()
"""

from __future__ import annotations

from django.db import models
from django.db.models import F
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import ContributionInterval


class Subscription(UUIDPrimaryKeyMixin, BaseModel):
    """
    Recurring charge schedule of an order.

    Uses a version field for optimistic concurrency control. It is
    incremented on every update.

    Fields:
        amount: Amount per charge in cents
        currency: ISO 4217 currency code (uppercase)
        interval: month or year
        quantity: Number of units per charge
        is_active: Whether charges are currently expected
        is_managed_externally: Whether the provider drives the schedule
        paypal_subscription_id: PayPal subscription id (I-xxx)
        stripe_subscription_id: Stripe subscription id (sub_xxx)
        next_charge_date: When the next charge is due
        next_period_start: Start of the next billing period
        charge_number: Number of charges made so far
        activated_at/deactivated_at: Lifecycle timestamps
        version: Optimistic locking version
    """

    # ==========================================================================
    # Terms
    # ==========================================================================

    amount = models.PositiveIntegerField(
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
        default=ContributionInterval.MONTH,
    )

    quantity = models.PositiveIntegerField(default=1)

    # ==========================================================================
    # State
    # ==========================================================================

    is_active = models.BooleanField(default=False, db_index=True)

    is_managed_externally = models.BooleanField(
        default=False,
        help_text="Whether the payment provider drives the charge schedule",
    )

    # ==========================================================================
    # Provider Integration
    # ==========================================================================

    paypal_subscription_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="PayPal subscription ID (I-xxx)",
    )

    stripe_subscription_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Stripe subscription ID (sub_xxx)",
    )

    # ==========================================================================
    # Schedule
    # ==========================================================================

    next_charge_date = models.DateTimeField(null=True, blank=True)

    next_period_start = models.DateTimeField(null=True, blank=True)

    charge_number = models.PositiveIntegerField(
        default=0,
        help_text="Number of successful charges so far",
    )

    activated_at = models.DateTimeField(null=True, blank=True)

    deactivated_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Concurrency Control
    # ==========================================================================

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"
        indexes = [
            models.Index(fields=["is_active", "next_charge_date"], name="payments_su_is_acti_8c2e4a_idx"),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount / 100:.2f} {self.currency}"
        return f"Subscription({self.id}, {amount_display}/{self.interval})"

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment for optimistic locking.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None:
                kwargs["update_fields"] = {*update_fields, "version"}
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])

    def deactivate(self) -> None:
        """Stop the schedule. The record is kept for history."""
        self.is_active = False
        self.deactivated_at = timezone.now()
