"""
Model mixins providing reusable fields for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: UUID primary key, client-suppliable
    MetadataMixin: Opaque JSON metadata storage

Usage:
    from core.models import BaseModel
    from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

    class Message(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
        body = models.TextField(null=True)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    The id is generated server-side when omitted, but clients may supply
    their own so they can reference a chat or message before the server has
    acknowledged it:

        Chat.objects.create(id=client_generated_uuid, ...)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class MetadataMixin(models.Model):
    """
    Opaque JSON metadata storage.

    The server never interprets metadata beyond a few documented keys;
    clients use it to carry presentation hints alongside a record.
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Opaque client-supplied key-value metadata",
    )

    class Meta:
        abstract = True

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Get metadata value by key, tolerating non-dict payloads."""
        if not isinstance(self.metadata, dict):
            return default
        return self.metadata.get(key, default)
