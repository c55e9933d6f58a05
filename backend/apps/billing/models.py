"""
Billing models - subscription plans and payment attempts.
"""

import uuid

from django.db import models
from django.db.models import Q

from apps.core.models import GymScopedModel


class BillingCycle(models.TextChoices):
    MONTHLY = "monthly", "Monthly"
    QUARTERLY = "quarterly", "Quarterly"
    SEMIANNUALLY = "semiannually", "Semiannually"
    ANNUALLY = "annually", "Annually"


class SubscriptionPlan(GymScopedModel):
    """
    A subscription tier offered to one gym (trial, monthly, annual, ...).

    Provisioned by the catalog when the gym is created; paid tiers become
    active on their first successful payment.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan_id = models.CharField(
        max_length=100,
        help_text="Human-stable identifier unique within the gym, e.g. 'monthly_<gym_id>'",
    )
    name = models.CharField(max_length=255)
    description = models.CharField(max_length=500, blank=True)
    price = models.PositiveIntegerField(help_text="Price in the smallest currency unit")
    currency = models.CharField(max_length=3, default="XOF")
    billing_cycle = models.CharField(
        max_length=20,
        choices=BillingCycle.choices,
        default=BillingCycle.MONTHLY,
    )
    is_trial = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.INACTIVE,
        db_index=True,
    )

    class Meta:
        ordering = ["price"]
        constraints = [
            models.UniqueConstraint(fields=["gym", "plan_id"], name="unique_plan_id_per_gym"),
            models.UniqueConstraint(
                fields=["gym"],
                condition=Q(is_trial=True),
                name="one_trial_plan_per_gym",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.billing_cycle})"


class Payment(GymScopedModel):
    """
    One billing attempt for a plan.

    payment_id is the idempotency key shared with the gateway. The
    [start_date, end_date) window is fixed when the row is created and is
    never recomputed when the gateway confirms the payment.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    payment_id = models.CharField(
        max_length=100,
        unique=True,
        help_text="Idempotency key, e.g. 'pay_1718000000000_a1b2c3d4'",
    )
    gateway_token = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Invoice token returned by the gateway",
    )
    subscription = models.ForeignKey(
        SubscriptionPlan,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount = models.PositiveIntegerField(help_text="Amount in the smallest currency unit")
    currency = models.CharField(max_length=3, default="XOF")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    receipt_url = models.CharField(max_length=500, blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.payment_id} - {self.status}"

    @property
    def is_completed(self) -> bool:
        return self.status == self.Status.COMPLETED
