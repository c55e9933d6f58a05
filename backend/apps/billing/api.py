"""
Billing API endpoints.

Handles PayDunya checkout, payment confirmation, entitlement status and
the gym's plan catalog. Callers must be members of the gym they act on.
"""

from uuid import UUID

from django.http import HttpRequest
from django.utils import timezone
from ninja import Router
from ninja.security import django_auth

from apps.billing.models import SubscriptionPlan
from apps.billing.paydunya_client import Customer
from apps.billing.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    ConfirmPaymentRequest,
    EntitlementResponse,
    PaymentResultResponse,
    PlanListResponse,
    PlanResponse,
)
from apps.billing.services import confirm_payment, initiate_checkout, is_entitled
from apps.core.auth import require_gym_member
from apps.core.logging import bind_contextvars, get_logger
from apps.core.schemas import ErrorResponse

logger = get_logger(__name__)

router = Router(tags=["billing"])


@router.post(
    "/checkout",
    response={
        200: CheckoutResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        500: ErrorResponse,
    },
    auth=django_auth,
    operation_id="createCheckout",
    summary="Create PayDunya checkout invoice",
)
def create_checkout(request: HttpRequest, payload: CheckoutRequest) -> CheckoutResponse:
    """
    Start a payment for one of the gym's subscription plans.

    Returns the gateway URL to redirect the purchaser to. The subscription
    is activated later, when the gateway reports the payment as completed.
    """
    ctx = require_gym_member(request, payload.gym_id)
    bind_contextvars(**{"gym.id": str(ctx.gym.id)})

    user = ctx.user
    purchaser = Customer(
        email=user.email,
        name=user.get_full_name() or user.get_username(),
        phone=ctx.gym.phone,
    )

    result = initiate_checkout(
        gym_id=ctx.gym.id,
        subscription_id=payload.subscription_id,
        purchaser=purchaser,
    )
    return CheckoutResponse(checkout_url=result.checkout_url, payment_id=result.payment_id)


@router.post(
    "/confirm-payment",
    response={
        200: PaymentResultResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        500: ErrorResponse,
    },
    auth=django_auth,
    operation_id="confirmPayment",
    summary="Confirm payment with PayDunya",
)
def confirm_payment_endpoint(
    request: HttpRequest, payload: ConfirmPaymentRequest
) -> PaymentResultResponse:
    """
    Pull the invoice status from the gateway and apply it.

    Safe to call repeatedly, including after the webhook already arrived.
    """
    ctx = require_gym_member(request, payload.gym_id)
    bind_contextvars(**{"gym.id": str(ctx.gym.id)})

    result = confirm_payment(payment_id=payload.payment_id, gym_id=ctx.gym.id)
    return PaymentResultResponse(
        payment_id=result.payment_id,
        gym_id=result.gym_id,
        status=result.status,
        outcome=result.outcome,
        start_date=result.start_date,
        end_date=result.end_date,
    )


@router.get(
    "/status",
    response={200: EntitlementResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=django_auth,
    operation_id="getEntitlement",
    summary="Get gym entitlement status",
)
def get_status(request: HttpRequest, gym_id: UUID) -> EntitlementResponse:
    """Whether the gym currently has access, and why."""
    gym = require_gym_member(request, gym_id).gym
    now = timezone.now()

    return EntitlementResponse(
        gym_id=gym.id,
        is_entitled=is_entitled(gym, now),
        subscription_active=gym.subscription_active,
        trial_end_date=gym.trial_end_date,
        trial_used=gym.trial_used,
        is_trial_active=gym.is_trial_open(now),
        current_subscription_id=gym.current_subscription_id,
        current_subscription_start=gym.current_subscription_start,
        current_subscription_end=gym.current_subscription_end,
    )


@router.get(
    "/plans",
    response={200: PlanListResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=django_auth,
    operation_id="listPlans",
    summary="List the gym's subscription plans",
)
def list_plans(request: HttpRequest, gym_id: UUID) -> PlanListResponse:
    gym = require_gym_member(request, gym_id).gym
    plans = SubscriptionPlan.objects.filter(gym=gym)

    return PlanListResponse(
        plans=[
            PlanResponse(
                id=plan.id,
                plan_id=plan.plan_id,
                name=plan.name,
                description=plan.description,
                price=plan.price,
                currency=plan.currency,
                billing_cycle=plan.billing_cycle,
                is_trial=plan.is_trial,
                status=plan.status,
            )
            for plan in plans
        ]
    )
