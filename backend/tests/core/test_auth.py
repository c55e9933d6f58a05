"""
Tests for request authorization helpers.
"""

import uuid

import pytest
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory

from apps.core.auth import (
    get_authenticated_user,
    is_platform_admin,
    require_gym_member,
    require_platform_admin,
)
from apps.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from tests.gyms.factories import GymFactory, MemberFactory, UserFactory


def request_for(user):
    request = RequestFactory().get("/")
    request.user = user
    return request


@pytest.mark.django_db
class TestGetAuthenticatedUser:
    def test_anonymous(self) -> None:
        with pytest.raises(AuthenticationError):
            get_authenticated_user(request_for(AnonymousUser()))

    def test_inactive_user(self) -> None:
        with pytest.raises(AuthenticationError):
            get_authenticated_user(request_for(UserFactory(is_active=False)))

    def test_authenticated(self) -> None:
        user = UserFactory()
        assert get_authenticated_user(request_for(user)) == user


@pytest.mark.django_db
class TestPlatformAdmin:
    def test_staff_is_platform_admin(self) -> None:
        assert is_platform_admin(UserFactory(is_staff=True)) is True

    def test_regular_user_is_not(self) -> None:
        assert is_platform_admin(UserFactory()) is False

    def test_require_platform_admin_rejects_members(self) -> None:
        member = MemberFactory(role="owner")

        with pytest.raises(PermissionDeniedError):
            require_platform_admin(request_for(member.user))

    def test_role_checked_on_every_call(self) -> None:
        """Revoking the role takes effect on the next call."""
        user = UserFactory(is_staff=True)
        assert require_platform_admin(request_for(user)) == user

        user.is_staff = False
        user.save()

        with pytest.raises(PermissionDeniedError):
            require_platform_admin(request_for(user))


@pytest.mark.django_db
class TestRequireGymMember:
    """Tests for require_gym_member."""

    def test_member(self) -> None:
        member = MemberFactory(role="admin")

        ctx = require_gym_member(request_for(member.user), member.gym_id)

        assert ctx.gym == member.gym
        assert ctx.member == member
        assert ctx.is_gym_admin is True

    def test_staff_member_is_not_gym_admin(self) -> None:
        member = MemberFactory(role="staff")

        ctx = require_gym_member(request_for(member.user), member.gym_id)

        assert ctx.is_gym_admin is False

    def test_non_member(self) -> None:
        gym = GymFactory()

        with pytest.raises(PermissionDeniedError):
            require_gym_member(request_for(UserFactory()), gym.id)

    def test_platform_admin_without_membership(self) -> None:
        gym = GymFactory()

        ctx = require_gym_member(request_for(UserFactory(is_staff=True)), gym.id)

        assert ctx.gym == gym
        assert ctx.member is None

    def test_unknown_gym(self) -> None:
        with pytest.raises(NotFoundError):
            require_gym_member(request_for(UserFactory()), uuid.uuid4())
