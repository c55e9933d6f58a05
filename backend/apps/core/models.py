"""
Core models - shared base classes.
"""

from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract base model with created_at/updated_at timestamps.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class GymScopedModel(TimestampedModel):
    """
    Abstract base model for all gym-scoped (tenant-owned) entities.

    Usage:
        class SubscriptionPlan(GymScopedModel):
            name = models.CharField(max_length=255)
    """

    gym = models.ForeignKey(
        "gyms.Gym",
        on_delete=models.CASCADE,
        related_name="%(class)s_set",
    )

    class Meta:
        abstract = True
