"""
Local mirror of the PayPal catalog.

PayPal bills subscriptions against plans, and plans belong to products.
We create one product per (collective, tier) pair and one plan per
(product, amount, currency, interval) tuple, and keep their PayPal ids
here so they can be reused instead of recreated.

Plans are immutable: PayPal does not let us change the price of an
existing plan, so a new amount means a new plan.

Usage:
    from payments.models import PaypalPlan, PaypalProduct

    product = PaypalProduct.objects.for_collective(collective, tier)
    plan = product.plans.filter(currency="USD", interval="month", amount=1000).first()
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from core.models import BaseModel

from payments.state_machines import ContributionInterval


class PaypalProductManager(models.Manager):
    def for_collective(self, collective, tier=None) -> PaypalProduct | None:
        """Return the product of ``collective`` scoped to ``tier`` (or to no tier)."""
        return self.filter(collective=collective, tier=tier).first()


class PaypalProduct(BaseModel):
    """
    A PayPal catalog product.

    Fields:
        id: PayPal product id (PROD-xxx)
        collective: Receiving account
        tier: Tier the product is scoped to (None for custom contributions)
    """

    id = models.CharField(
        max_length=255,
        primary_key=True,
        help_text="PayPal product ID (PROD-xxx)",
    )

    collective = models.ForeignKey(
        "collectives.Collective",
        on_delete=models.CASCADE,
        related_name="paypal_products",
    )

    tier = models.ForeignKey(
        "collectives.Tier",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="paypal_products",
    )

    objects = PaypalProductManager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "PayPal Product"
        verbose_name_plural = "PayPal Products"
        # NULL never equals NULL in unique indexes, so the "no tier" case
        # needs its own partial constraint.
        constraints = [
            models.UniqueConstraint(
                fields=["collective", "tier"],
                condition=Q(tier__isnull=False),
                name="paypal_product_unique_tier",
            ),
            models.UniqueConstraint(
                fields=["collective"],
                condition=Q(tier__isnull=True),
                name="paypal_product_unique_untiered",
            ),
        ]

    def __str__(self) -> str:
        return f"PaypalProduct({self.id})"


class PaypalPlan(BaseModel):
    """
    A PayPal billing plan: one price for one product.

    Fields:
        id: PayPal plan id (P-xxx)
        product: Parent product
        amount: Price per cycle in cents
        currency: ISO 4217 currency code (uppercase)
        interval: month or year
    """

    id = models.CharField(
        max_length=255,
        primary_key=True,
        help_text="PayPal plan ID (P-xxx)",
    )

    product = models.ForeignKey(
        PaypalProduct,
        on_delete=models.PROTECT,
        related_name="plans",
    )

    amount = models.PositiveIntegerField(
        help_text="Price per billing cycle in smallest currency unit",
    )

    currency = models.CharField(max_length=3)

    interval = models.CharField(
        max_length=10,
        choices=ContributionInterval.choices,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "PayPal Plan"
        verbose_name_plural = "PayPal Plans"
        constraints = [
            models.UniqueConstraint(
                fields=["product", "amount", "currency", "interval"],
                name="paypal_plan_unique_terms",
            ),
        ]

    def __str__(self) -> str:
        return f"PaypalPlan({self.id}, {self.amount} {self.currency}/{self.interval})"
