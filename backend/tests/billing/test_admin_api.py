"""
Tests for platform admin billing endpoints.
"""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.billing.models import Payment
from tests.gyms.factories import GymFactory


@pytest.mark.django_db
class TestAdminAuthorization:
    """Every admin endpoint re-checks the platform-admin role."""

    @pytest.mark.parametrize("action", ["activate", "deactivate", "extend-trial"])
    def test_gym_member_is_forbidden(self, member_client, gym, action) -> None:
        response = member_client.post(
            f"/api/v1/admin/gyms/{gym.id}/{action}", data={}, content_type="application/json"
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Platform admin access required"}

    def test_unauthenticated(self, api_client, gym) -> None:
        response = api_client.post(f"/api/v1/admin/gyms/{gym.id}/activate")

        assert response.status_code == 401

    def test_stats_forbidden(self, member_client) -> None:
        assert member_client.get("/api/v1/admin/stats").status_code == 403


@pytest.mark.django_db
class TestAdminActions:
    def test_activate(self, admin_client, gym) -> None:
        response = admin_client.post(f"/api/v1/admin/gyms/{gym.id}/activate")

        assert response.status_code == 200
        body = response.json()
        assert body["subscription_active"] is True
        assert body["current_subscription_id"] is not None
        assert Payment.objects.filter(gym=gym, payment_method="admin").count() == 1

    def test_activate_unknown_gym(self, admin_client) -> None:
        response = admin_client.post(f"/api/v1/admin/gyms/{uuid.uuid4()}/activate")

        assert response.status_code == 404

    def test_deactivate(self, admin_client, gym) -> None:
        admin_client.post(f"/api/v1/admin/gyms/{gym.id}/activate")

        response = admin_client.post(f"/api/v1/admin/gyms/{gym.id}/deactivate")

        assert response.status_code == 200
        assert response.json()["subscription_active"] is False
        assert response.json()["current_subscription_id"] is None

    def test_extend_trial_defaults_to_seven_days(self, admin_client) -> None:
        gym = GymFactory(trial_end_date=timezone.now() - timedelta(days=3), trial_used=True)

        response = admin_client.post(
            f"/api/v1/admin/gyms/{gym.id}/extend-trial", data={}, content_type="application/json"
        )

        assert response.status_code == 200
        gym.refresh_from_db()
        assert gym.trial_used is False
        assert timedelta(days=6) < gym.trial_end_date - timezone.now() <= timedelta(days=7)

    def test_extend_trial_rejects_zero_days(self, admin_client, gym) -> None:
        response = admin_client.post(
            f"/api/v1/admin/gyms/{gym.id}/extend-trial",
            data={"days": 0},
            content_type="application/json",
        )

        assert response.status_code == 400

    def test_stats(self, admin_client, gym) -> None:
        response = admin_client.get("/api/v1/admin/stats")

        assert response.status_code == 200
        assert response.json() == {
            "total_gyms": 1,
            "active_subscriptions": 0,
            "trial_gyms": 1,
            "expired_subscriptions": 0,
        }
