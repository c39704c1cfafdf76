"""
Payments app configuration.

This app provides contribution processing:
- Orders, subscriptions and payment methods
- PayPal catalog mirror (products and plans)
- PayPal gateway and Stripe adapter
- Subscription activation and mutation services
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
