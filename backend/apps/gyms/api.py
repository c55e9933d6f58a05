"""
Gyms API endpoints.
"""

from django.http import HttpRequest
from ninja import Router
from ninja.security import django_auth

from apps.core.auth import get_authenticated_user
from apps.core.schemas import ErrorResponse
from apps.gyms.schemas import CreateGymRequest, GymResponse
from apps.gyms.services import create_gym

router = Router(tags=["gyms"])


@router.post(
    "",
    response={201: GymResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=django_auth,
    operation_id="createGym",
    summary="Create a gym",
)
def create(request: HttpRequest, payload: CreateGymRequest) -> tuple[int, GymResponse]:
    """
    Create a gym owned by the current user.

    The gym starts with a 30-day free trial and its default plan catalog.
    """
    user = get_authenticated_user(request)
    gym = create_gym(
        owner=user,
        name=payload.name.strip(),
        address=payload.address,
        city=payload.city,
        phone=payload.phone,
    )
    return 201, GymResponse(
        id=gym.id,
        name=gym.name,
        address=gym.address,
        city=gym.city,
        phone=gym.phone,
        subscription_active=gym.subscription_active,
        trial_end_date=gym.trial_end_date,
        trial_used=gym.trial_used,
    )
