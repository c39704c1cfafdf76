"""
User manager for email-based accounts.

Users never contribute directly: they administer contributing accounts
(see collectives.Membership). The manager only needs to create login
identities, so creation is kept to email, password and flags.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for the User model using email instead of username.

    Usage:
        user = User.objects.create_user(email="backer@example.com", password="s3cret-pass")
        admin = User.objects.create_superuser(email="ops@example.com", password="s3cret-pass")
    """

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The Email field must be set")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        # Users created by an import or an admin action log in by reset link
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        """
        Create a regular user.

        Raises:
            ValueError: If email is empty
        """
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create a superuser. Superusers administer every account.

        Raises:
            ValueError: If is_staff or is_superuser is explicitly disabled
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        for flag in ("is_staff", "is_superuser"):
            if extra_fields[flag] is not True:
                raise ValueError(f"Superuser must have {flag}=True.")

        return self._create_user(email, password, **extra_fields)
