"""
Abstract bases and field helpers shared by every app's models.
"""

import uuid

from django.conf import settings
from django.db import models


def money_field(max_digits=10, **kwargs):
    """Amount in the account currency, always two decimal places."""
    return models.DecimalField(max_digits=max_digits, decimal_places=2, **kwargs)


def rate_field(**kwargs):
    """Percentage 0-100 with two decimal places."""
    return models.DecimalField(max_digits=5, decimal_places=2, **kwargs)


class TimeStampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class AuditMixin(models.Model):
    """Who created and last changed a record. Both stay null for rows written by scheduled jobs."""

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(app_label)s_%(class)s_created",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(app_label)s_%(class)s_updated",
    )

    class Meta:
        abstract = True
