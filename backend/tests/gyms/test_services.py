"""
Tests for gym provisioning.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from django.db import IntegrityError

from apps.billing.catalog import DEFAULT_CATALOG
from apps.billing.models import SubscriptionPlan
from apps.billing.services import is_entitled
from apps.gyms.models import Gym, Member
from apps.gyms.services import create_gym, provision_gym

from .factories import GymFactory, UserFactory

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


@pytest.mark.django_db
class TestCreateGym:
    """Tests for create_gym."""

    def test_creates_gym_with_owner_membership(self) -> None:
        owner = UserFactory()

        gym = create_gym(owner, "Iron Temple", city="Dakar", now=NOW)

        assert gym.owner == owner
        member = Member.objects.get(gym=gym)
        assert member.user == owner
        assert member.role == Member.Role.OWNER

    def test_starts_thirty_day_trial(self) -> None:
        gym = create_gym(UserFactory(), "Iron Temple", now=NOW)

        gym.refresh_from_db()
        assert gym.trial_end_date == NOW + timedelta(days=30)
        assert gym.trial_used is False
        assert gym.subscription_active is True
        assert is_entitled(gym, NOW + timedelta(days=29)) is True
        assert is_entitled(gym, NOW + timedelta(days=30)) is False

    def test_provisions_catalog(self) -> None:
        gym = create_gym(UserFactory(), "Iron Temple", now=NOW)

        plans = SubscriptionPlan.objects.filter(gym=gym)
        assert plans.count() == len(DEFAULT_CATALOG)
        assert plans.filter(is_trial=True).count() == 1

    def test_failure_leaves_nothing_behind(self) -> None:
        """Provisioning is all-or-nothing."""
        with patch(
            "apps.gyms.services.provision_catalog", side_effect=IntegrityError("boom")
        ):
            with pytest.raises(IntegrityError):
                create_gym(UserFactory(), "Iron Temple", now=NOW)

        assert Gym.objects.count() == 0
        assert Member.objects.count() == 0


@pytest.mark.django_db
class TestProvisionGym:
    def test_is_idempotent(self) -> None:
        """Re-running does not restart the trial or duplicate plans."""
        gym = create_gym(UserFactory(), "Iron Temple", now=NOW)

        provision_gym(gym, now=NOW + timedelta(days=10))

        gym.refresh_from_db()
        assert gym.trial_end_date == NOW + timedelta(days=30)
        assert SubscriptionPlan.objects.filter(gym=gym).count() == len(DEFAULT_CATALOG)

    def test_provisions_existing_gym_without_trial(self) -> None:
        gym = GymFactory(trial_end_date=None, subscription_active=False)

        result = provision_gym(gym, now=NOW)

        assert gym.trial_end_date == NOW + timedelta(days=30)
        assert result.trial_plan is not None
