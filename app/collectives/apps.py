"""
Django app configuration for collectives.
"""

from django.apps import AppConfig


class CollectivesConfig(AppConfig):
    """Configuration for the collectives application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "collectives"
    verbose_name = "Collectives"
