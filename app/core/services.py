"""
Base service layer patterns for business logic encapsulation.

Services encapsulate business logic separate from models. Models hold
data and state transitions, services coordinate several models and
external collaborators (payment gateways) inside explicit transaction
boundaries.

Usage:
    from core.services import BaseService

    class SubscriptionService(BaseService):
        def cancel(self, order):
            with self.atomic():
                order.subscription.deactivate()
                order.subscription.save()
                order.cancel()
                order.save()

            self.get_logger().info(
                "Contribution cancelled", extra={"order_id": str(order.id)}
            )

Design Notes:
    - Expected failures are raised as core.exceptions subclasses
    - Collaborators (gateways, adapters) are injected through __init__
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Provides:
    - A logger named after the concrete service class
    - A transaction helper making atomic boundaries explicit
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute the enclosed operations in one database transaction.

        If any operation fails, every write made inside the block is
        rolled back. Nested blocks become savepoints.
        """
        with transaction.atomic():
            yield
