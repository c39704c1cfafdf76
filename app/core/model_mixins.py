"""
Model mixins shared across apps.

Available Mixins:
    UUIDPrimaryKeyMixin: Use a random UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Subscription(UUIDPrimaryKeyMixin, BaseModel):
        amount = models.PositiveIntegerField()

Note:
    UUID keys are assigned at instantiation time, so ``self.pk`` is already
    set before the first insert. Use ``self._state.adding`` to tell a new
    row from an existing one.
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of an auto-increment integer.

    Ids are not guessable and do not leak record counts, which matters
    for orders and payment methods exposed to contributors.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
