"""
Platform admin billing endpoints.

Manual activation, deactivation and trial extension bypass the gateway.
Every call re-checks the platform-admin role on the server.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.security import django_auth

from apps.billing.schemas import AdminStatsResponse, ExtendTrialRequest, GymBillingResponse
from apps.billing.services import admin_activate, admin_deactivate, extend_trial, get_admin_stats
from apps.core.auth import require_platform_admin
from apps.core.logging import bind_contextvars
from apps.core.schemas import ErrorResponse
from apps.gyms.models import Gym

router = Router(tags=["admin"])

ADMIN_RESPONSES = {
    200: GymBillingResponse,
    400: ErrorResponse,
    401: ErrorResponse,
    403: ErrorResponse,
    404: ErrorResponse,
}


def _gym_response(gym: Gym) -> GymBillingResponse:
    return GymBillingResponse(
        id=gym.id,
        name=gym.name,
        subscription_active=gym.subscription_active,
        trial_end_date=gym.trial_end_date,
        trial_used=gym.trial_used,
        current_subscription_id=gym.current_subscription_id,
        current_subscription_start=gym.current_subscription_start,
        current_subscription_end=gym.current_subscription_end,
    )


@router.post(
    "/gyms/{gym_id}/activate",
    response=ADMIN_RESPONSES,
    auth=django_auth,
    operation_id="adminActivateSubscription",
    summary="Manually activate a gym subscription",
)
def activate(request: HttpRequest, gym_id: UUID) -> GymBillingResponse:
    """Grant a 30-day paid window on the gym's admin tier."""
    actor = require_platform_admin(request)
    bind_contextvars(**{"gym.id": str(gym_id)})
    return _gym_response(admin_activate(gym_id, actor=actor))


@router.post(
    "/gyms/{gym_id}/deactivate",
    response=ADMIN_RESPONSES,
    auth=django_auth,
    operation_id="adminDeactivateSubscription",
    summary="Manually deactivate a gym subscription",
)
def deactivate(request: HttpRequest, gym_id: UUID) -> GymBillingResponse:
    actor = require_platform_admin(request)
    bind_contextvars(**{"gym.id": str(gym_id)})
    return _gym_response(admin_deactivate(gym_id, actor=actor))


@router.post(
    "/gyms/{gym_id}/extend-trial",
    response=ADMIN_RESPONSES,
    auth=django_auth,
    operation_id="adminExtendTrial",
    summary="Extend a gym's free trial",
)
def extend_gym_trial(
    request: HttpRequest, gym_id: UUID, payload: ExtendTrialRequest
) -> GymBillingResponse:
    """
    Extend the trial by ``days`` (default 7).

    Clears the gym's current paid subscription pointer.
    """
    require_platform_admin(request)
    bind_contextvars(**{"gym.id": str(gym_id)})
    return _gym_response(extend_trial(gym_id, payload.days))


@router.get(
    "/stats",
    response={200: AdminStatsResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=django_auth,
    operation_id="adminStats",
    summary="Subscription statistics",
)
def stats(request: HttpRequest) -> AdminStatsResponse:
    require_platform_admin(request)
    result = get_admin_stats()
    return AdminStatsResponse(
        total_gyms=result.total_gyms,
        active_subscriptions=result.active_subscriptions,
        trial_gyms=result.trial_gyms,
        expired_subscriptions=result.expired_subscriptions,
    )
