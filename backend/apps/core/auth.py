"""
Authentication context for request lifecycle.

The principal comes from Django's session authentication (request.user);
roles are always read from the database, never from client-held state.
"""

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.http import HttpRequest

from apps.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError

if TYPE_CHECKING:
    from django.contrib.auth.models import User

    from apps.gyms.models import Gym, Member


@dataclass
class AuthContext:
    """
    Authentication context resolved for a gym-scoped request.

    Attributes:
        user: The authenticated User
        gym: The Gym the user is acting within
        member: The Member record linking user to gym, or None for platform admins
    """

    user: "User"
    gym: "Gym"
    member: "Member | None" = None

    @property
    def is_gym_admin(self) -> bool:
        return self.member is not None and self.member.is_admin


def get_authenticated_user(request: HttpRequest) -> "User":
    """
    Return the authenticated user or raise 401.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated or not user.is_active:
        raise AuthenticationError()
    return user


def is_platform_admin(user: "User") -> bool:
    """Platform operators are staff users; this is a system-level role, not a gym role."""
    return bool(user.is_authenticated and user.is_active and user.is_staff)


def require_platform_admin(request: HttpRequest) -> "User":
    """
    Get the authenticated user and verify the platform-admin role.

    Raises:
        AuthenticationError: If not authenticated
        PermissionDeniedError: If the user is not a platform admin
    """
    user = get_authenticated_user(request)
    if not is_platform_admin(user):
        raise PermissionDeniedError("Platform admin access required")
    return user


def require_gym_member(request: HttpRequest, gym_id: uuid.UUID) -> AuthContext:
    """
    Resolve the gym and verify the user belongs to it.

    Platform admins may act on any gym without a membership.

    Raises:
        AuthenticationError: If not authenticated
        NotFoundError: If the gym does not exist
        PermissionDeniedError: If the user is not a member of the gym
    """
    from apps.gyms.models import Gym, Member

    user = get_authenticated_user(request)

    try:
        gym = Gym.objects.get(pk=gym_id)
    except Gym.DoesNotExist:
        raise NotFoundError("Gym not found")

    member = Member.objects.filter(gym=gym, user=user).first()
    if member is None and not is_platform_admin(user):
        raise PermissionDeniedError("Not a member of this gym")

    return AuthContext(user=user, gym=gym, member=member)
