"""
Authentication models.

This module defines the User model: email-based authentication with
the account-administration check the payment services rely on.

Related files:
    - managers.py: Custom user manager for email-based creation
    - collectives.models: Accounts and memberships users administer
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from collectives.models import Membership

if TYPE_CHECKING:
    from collectives.models import Collective


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    A user acts on behalf of accounts (collectives) through memberships.
    Contributions are always made from an account, never from the user
    directly.

    Fields:
        email: Primary identifier, unique, used for login
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='backer@example.com',
            password='securepassword'
        )

        if user.is_admin_of(order.from_collective):
            ...
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def is_admin_of(self, collective: Collective | None) -> bool:
        """
        Check whether this user administers the given account.

        Superusers administer every account. Other users need an ADMIN
        membership on the account itself.

        Returns:
            bool: False for a missing account, otherwise the admin check.
        """
        if collective is None:
            return False
        if self.is_superuser:
            return True

        return Membership.objects.filter(
            user=self,
            collective=collective,
            role=Membership.Role.ADMIN,
        ).exists()
