"""
Plan templates provisioned for every new gym.

plan_id values are derived from the gym id so provisioning can be re-run
without creating duplicates.
"""

from dataclasses import dataclass

from apps.billing.models import BillingCycle, SubscriptionPlan


@dataclass(frozen=True)
class PlanTemplate:
    """Blueprint for one SubscriptionPlan row."""

    slug: str
    name: str
    description: str
    price: int
    billing_cycle: str
    is_trial: bool = False
    status: str = SubscriptionPlan.Status.INACTIVE

    def plan_id_for(self, gym_id) -> str:
        return f"{self.slug}_{gym_id}"


TRIAL_TEMPLATE = PlanTemplate(
    slug="trial",
    name="Free trial",
    description="30 days free",
    price=0,
    billing_cycle=BillingCycle.MONTHLY,
    is_trial=True,
    status=SubscriptionPlan.Status.ACTIVE,
)

PAID_TEMPLATES: tuple[PlanTemplate, ...] = (
    PlanTemplate(
        slug="monthly",
        name="Monthly",
        description="Unlimited access - 1 month",
        price=30000,
        billing_cycle=BillingCycle.MONTHLY,
    ),
    PlanTemplate(
        slug="annual",
        name="Annual",
        description="Unlimited access - 1 year (-20%)",
        price=288000,
        billing_cycle=BillingCycle.ANNUALLY,
    ),
)

DEFAULT_CATALOG: tuple[PlanTemplate, ...] = (TRIAL_TEMPLATE, *PAID_TEMPLATES)

# Tier granted by a manual admin activation
ADMIN_TEMPLATE = PlanTemplate(
    slug="admin_monthly",
    name="Basic monthly subscription",
    description="Activated manually by a platform admin",
    price=25000,
    billing_cycle=BillingCycle.MONTHLY,
    status=SubscriptionPlan.Status.ACTIVE,
)

# Manual activations grant a fixed 30-day window
ADMIN_ACTIVATION_DAYS = 30
