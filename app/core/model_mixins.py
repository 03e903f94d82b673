"""
Reusable abstract mixins for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use a random UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Conversation(UUIDPrimaryKeyMixin, BaseModel):
        ...
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use an opaque UUID as primary key instead of an auto-increment integer.

    Used for identifiers that appear in URLs and WebSocket routes, where a
    sequential id would reveal how many rows exist and let clients guess
    other users' resources.

    Fields:
        id: UUIDField primary key, generated with uuid4
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
