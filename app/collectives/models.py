"""
Account models for contributors and beneficiaries.

A Collective is any account that can give or receive money: a user's
personal profile, an organization, a collective or a fiscal host.
Hosts hold the payment-provider credentials used for every external
call made on behalf of the collectives they host.

Usage:
    from collectives.models import Collective, Membership, Tier

    host = Collective.objects.create(name="Host", slug="host", is_host=True)
    collective = Collective.objects.create(name="Babel", slug="babel", host=host)

    collective.get_host_collective()  # -> host
    host.get_host_collective()  # -> host

    Membership.objects.create(
        user=user, collective=collective, role=Membership.Role.ADMIN
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Collective(UUIDPrimaryKeyMixin, BaseModel):
    """
    An account that gives or receives contributions.

    Fields:
        name: Display name, used in plan and product descriptions
        slug: Unique URL identifier
        type: Kind of account
        currency: ISO 4217 currency code (uppercase)
        image_url: Explicit logo URL (optional)
        is_host: Whether this account is a fiscal host
        host: Fiscal host of this account (optional)
    """

    class Type(models.TextChoices):
        USER = "USER", "User"
        ORGANIZATION = "ORGANIZATION", "Organization"
        COLLECTIVE = "COLLECTIVE", "Collective"
        FUND = "FUND", "Fund"
        EVENT = "EVENT", "Event"

    name = models.CharField(max_length=255)

    slug = models.SlugField(
        max_length=255,
        unique=True,
        help_text="Unique URL identifier",
    )

    type = models.CharField(
        max_length=20,
        choices=Type.choices,
        default=Type.COLLECTIVE,
    )

    currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="ISO 4217 currency code (uppercase)",
    )

    image_url = models.URLField(
        max_length=500,
        blank=True,
        default="",
    )

    is_host = models.BooleanField(
        default=False,
        help_text="Whether this account is a fiscal host",
    )

    host = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="hosted_collectives",
        help_text="Fiscal host holding funds for this account",
    )

    class Meta:
        ordering = ["name"]
        verbose_name = "Collective"
        verbose_name_plural = "Collectives"

    def __str__(self) -> str:
        return f"Collective({self.slug})"

    def get_host_collective(self) -> Collective | None:
        """
        Return the fiscal host of this account.

        A host is its own host. Accounts without a host return None.
        """
        if self.is_host:
            return self
        return self.host

    def get_image_url(self) -> str:
        """Return the logo URL, falling back to the images service."""
        if self.image_url:
            return self.image_url
        return f"{settings.IMAGES_URL.rstrip('/')}/{self.slug}/logo.png"


class Membership(BaseModel):
    """
    Link between a user and an account.

    Only ADMIN members may act on the account's behalf (spend its
    payment methods, change or cancel its contributions).
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        MEMBER = "MEMBER", "Member"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    collective = models.ForeignKey(
        Collective,
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.MEMBER,
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "collective", "role"],
                name="membership_unique_role",
            ),
        ]

    def __str__(self) -> str:
        return f"Membership({self.user_id}, {self.collective_id}, {self.role})"


class Tier(UUIDPrimaryKeyMixin, BaseModel):
    """
    A named contribution level offered by an account.

    Amount Rules:
        FIXED: contributions must be at least ``amount``
        FLEXIBLE: contributions must be at least ``minimum_amount``

    Interval:
        month/year force the contribution interval, flexible lets the
        contributor choose, empty means one-time.
    """

    class Type(models.TextChoices):
        TIER = "TIER", "Tier"
        MEMBERSHIP = "MEMBERSHIP", "Membership"
        SERVICE = "SERVICE", "Service"
        PRODUCT = "PRODUCT", "Product"
        TICKET = "TICKET", "Ticket"
        DONATION = "DONATION", "Donation"

    class AmountType(models.TextChoices):
        FIXED = "FIXED", "Fixed"
        FLEXIBLE = "FLEXIBLE", "Flexible"

    class Interval(models.TextChoices):
        MONTH = "month", "Monthly"
        YEAR = "year", "Yearly"
        FLEXIBLE = "flexible", "Flexible"

    collective = models.ForeignKey(
        Collective,
        on_delete=models.CASCADE,
        related_name="tiers",
    )

    name = models.CharField(max_length=255)

    type = models.CharField(
        max_length=20,
        choices=Type.choices,
        default=Type.TIER,
    )

    amount_type = models.CharField(
        max_length=10,
        choices=AmountType.choices,
        default=AmountType.FIXED,
    )

    amount = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Fixed amount in cents",
    )

    minimum_amount = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Minimum amount in cents for flexible tiers",
    )

    currency = models.CharField(max_length=3, default="USD")

    interval = models.CharField(
        max_length=10,
        choices=Interval.choices,
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["collective", "name"]

    def __str__(self) -> str:
        return f"Tier({self.name}, {self.amount_type})"

    @property
    def is_flexible_amount(self) -> bool:
        return self.amount_type == self.AmountType.FLEXIBLE
