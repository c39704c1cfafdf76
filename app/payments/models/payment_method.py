"""
PaymentMethod model.

A payment method is an opaque credential owned by a contributing
account. For PayPal subscriptions the token is the provider-side
subscription id (I-XXXXXXXX), for credit cards it is the Stripe payment
method id (pm_xxx).

Usage:
    from payments.models import PaymentMethod

    payment_method = PaymentMethod.objects.create(
        service=PaymentMethodService.PAYPAL,
        type=PaymentMethodType.SUBSCRIPTION,
        token="I-BW452GLLEP1G",
        collective=contributor,
        currency="USD",
        saved=False,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import PaymentMethodService, PaymentMethodType


class PaymentMethod(UUIDPrimaryKeyMixin, BaseModel):
    """
    Credential used to pay for orders.

    Fields:
        service: Payment backend (paypal, stripe)
        type: Kind of credential (subscription, creditcard)
        name: Display name (payer email for PayPal, card brand/last4 for cards)
        token: Provider-side identifier
        currency: ISO 4217 currency code (uppercase)
        collective: Account owning this payment method
        created_by: User who added it
        saved: Whether the contributor chose to reuse it
        data: Provider-specific details
    """

    service = models.CharField(
        max_length=20,
        choices=PaymentMethodService.choices,
        db_index=True,
    )

    type = models.CharField(
        max_length=20,
        choices=PaymentMethodType.choices,
    )

    name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Display name shown to the contributor",
    )

    token = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Provider-side identifier",
    )

    currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="ISO 4217 currency code (uppercase)",
    )

    collective = models.ForeignKey(
        "collectives.Collective",
        on_delete=models.PROTECT,
        related_name="payment_methods",
        help_text="Account owning this payment method",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payment_methods",
    )

    saved = models.BooleanField(default=False)

    data = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Method"
        verbose_name_plural = "Payment Methods"
        indexes = [
            models.Index(fields=["service", "type"], name="payments_pa_service_5d1f0b_idx"),
        ]

    def __str__(self) -> str:
        return f"PaymentMethod({self.service}/{self.type}, {self.token})"
