"""
Gyms models - the tenant row and its memberships.
"""

import uuid

from django.conf import settings
from django.db import models

from apps.core.models import TimestampedModel


class Gym(TimestampedModel):
    """
    A gym is the billing tenant.

    Entitlement state is denormalized onto this row for fast reads:
    the trial window, the active flag and a pointer to the current
    paid subscription window. Every billing write path keeps them consistent.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Gym info
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_gyms",
    )

    # Entitlement
    subscription_active = models.BooleanField(
        default=False,
        db_index=True,
        help_text="True while a paid window or the trial grants access",
    )
    trial_end_date = models.DateTimeField(null=True, blank=True)
    trial_used = models.BooleanField(
        default=False,
        help_text="Set once the trial no longer grants access (e.g. superseded by a paid plan)",
    )
    current_subscription = models.ForeignKey(
        "billing.SubscriptionPlan",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    current_subscription_start = models.DateTimeField(null=True, blank=True)
    current_subscription_end = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    def is_trial_open(self, now) -> bool:
        return (
            self.trial_end_date is not None
            and self.trial_end_date > now
            and not self.trial_used
        )

    def has_paid_window(self, now) -> bool:
        return (
            self.subscription_active
            and self.current_subscription_end is not None
            and self.current_subscription_end > now
        )


class Member(TimestampedModel):
    """
    Gym-scoped membership linking a User to a Gym.

    Only used to decide who may start a checkout or read billing status.
    """

    class Role(models.TextChoices):
        OWNER = "owner", "Owner"
        ADMIN = "admin", "Admin"
        STAFF = "staff", "Staff"

    gym = models.ForeignKey(Gym, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="gym_memberships",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STAFF)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["gym", "user"], name="unique_gym_member"),
        ]

    def __str__(self) -> str:
        return f"{self.user} @ {self.gym} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role in (self.Role.OWNER, self.Role.ADMIN)
