"""
ConnectedAccount model for provider credentials of fiscal hosts.

Every external call made on behalf of a collective is made with the
credentials of its fiscal host. For PayPal, ``client_id`` and ``token``
are the REST app's client id and secret used for the OAuth2
client-credentials grant.

Usage:
    from payments.models import ConnectedAccount

    ConnectedAccount.objects.create(
        collective=host,
        service=PaymentMethodService.PAYPAL,
        client_id="AYx...",
        token="EKx...",
    )

    account = ConnectedAccount.objects.for_host(host, PaymentMethodService.PAYPAL)
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import PaymentMethodService


class ConnectedAccountManager(models.Manager):
    def for_host(self, host, service: str) -> ConnectedAccount | None:
        """Return the host's account for ``service``, or None."""
        if host is None:
            return None
        return self.filter(collective=host, service=service).first()


class ConnectedAccount(UUIDPrimaryKeyMixin, BaseModel):
    """
    Provider credentials attached to a host account.

    Fields:
        collective: Host account owning the credentials
        service: Payment backend (paypal, stripe)
        client_id: Public client identifier
        token: Secret (client secret or API key)
        data: Provider-specific extras

    Note:
        The collective field uses PROTECT on_delete so a host with
        running subscriptions cannot silently lose its credentials.
    """

    collective = models.ForeignKey(
        "collectives.Collective",
        on_delete=models.PROTECT,
        related_name="connected_accounts",
        help_text="Host account these credentials belong to",
    )

    service = models.CharField(
        max_length=20,
        choices=PaymentMethodService.choices,
        help_text="Payment backend these credentials are for",
    )

    client_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Public client identifier",
    )

    token = models.CharField(
        max_length=255,
        help_text="Secret used to authenticate with the provider",
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Provider-specific settings",
    )

    objects = ConnectedAccountManager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Connected Account"
        verbose_name_plural = "Connected Accounts"
        constraints = [
            models.UniqueConstraint(
                fields=["collective", "service"],
                name="connected_account_unique_service",
            ),
        ]

    def __str__(self) -> str:
        return f"ConnectedAccount({self.collective_id}, {self.service})"
