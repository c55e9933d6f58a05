"""
Billing API schemas - request/response types for billing endpoints.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema
from pydantic import Field


class CheckoutRequest(Schema):
    """Request to start a payment for one of the gym's plans."""

    gym_id: UUID
    subscription_id: UUID


class CheckoutResponse(Schema):
    """Gateway checkout URL to redirect the purchaser to."""

    checkout_url: str
    payment_id: str


class ConfirmPaymentRequest(Schema):
    """Request to pull a payment's status from the gateway."""

    gym_id: UUID
    payment_id: str = Field(..., min_length=1)


class PaymentResultResponse(Schema):
    """Reconciliation outcome for a payment."""

    payment_id: str
    gym_id: UUID
    status: str
    outcome: str  # 'applied', 'duplicate', 'ignored'
    start_date: datetime | None
    end_date: datetime | None


class PlanResponse(Schema):
    """A subscription plan offered to a gym."""

    id: UUID
    plan_id: str
    name: str
    description: str
    price: int
    currency: str
    billing_cycle: str
    is_trial: bool
    status: str


class PlanListResponse(Schema):
    plans: list[PlanResponse]


class EntitlementResponse(Schema):
    """Current entitlement state of a gym."""

    gym_id: UUID
    is_entitled: bool
    subscription_active: bool
    trial_end_date: datetime | None
    trial_used: bool
    is_trial_active: bool
    current_subscription_id: UUID | None
    current_subscription_start: datetime | None
    current_subscription_end: datetime | None


class ExtendTrialRequest(Schema):
    days: int = Field(7, ge=1, le=365)


class GymBillingResponse(Schema):
    """Gym entitlement fields returned by admin actions."""

    id: UUID
    name: str
    subscription_active: bool
    trial_end_date: datetime | None
    trial_used: bool
    current_subscription_id: UUID | None
    current_subscription_start: datetime | None
    current_subscription_end: datetime | None


class AdminStatsResponse(Schema):
    total_gyms: int
    active_subscriptions: int
    trial_gyms: int
    expired_subscriptions: int
