"""
Tests for billing API endpoints.

Uses the Django test client with session login; the gateway client is
replaced with the in-memory fake from conftest.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from apps.billing.exceptions import GatewayError
from apps.billing.models import Payment
from apps.billing.services import provision_catalog
from tests.gyms.factories import GymFactory, UserFactory

from .factories import PaymentFactory, SubscriptionPlanFactory


@pytest.fixture
def gateway(fake_gateway):
    with patch("apps.billing.services.get_paydunya_client", return_value=fake_gateway):
        yield fake_gateway


@pytest.mark.django_db
class TestCheckoutEndpoint:
    """Tests for POST /api/v1/billing/checkout."""

    url = "/api/v1/billing/checkout"

    def test_returns_checkout_url(self, member_client, gym, gateway) -> None:
        plan = SubscriptionPlanFactory(gym=gym, price=25000)

        response = member_client.post(
            self.url,
            data={"gym_id": str(gym.id), "subscription_id": str(plan.id)},
            content_type="application/json",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["checkout_url"] == gateway.url
        assert Payment.objects.get(payment_id=body["payment_id"]).status == Payment.Status.PENDING

    def test_forwards_purchaser(self, member_client, member, gym, gateway) -> None:
        plan = SubscriptionPlanFactory(gym=gym)

        member_client.post(
            self.url,
            data={"gym_id": str(gym.id), "subscription_id": str(plan.id)},
            content_type="application/json",
        )

        [call] = gateway.created
        assert call["customer"].email == member.user.email

    def test_missing_parameters_returns_400(self, member_client, gym, gateway) -> None:
        response = member_client.post(
            self.url, data={"gym_id": str(gym.id)}, content_type="application/json"
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters", "details": ["subscription_id"]}

    def test_unauthenticated_returns_401(self, api_client, gym, gateway) -> None:
        plan = SubscriptionPlanFactory(gym=gym)

        response = api_client.post(
            self.url,
            data={"gym_id": str(gym.id), "subscription_id": str(plan.id)},
            content_type="application/json",
        )

        assert response.status_code == 401

    def test_non_member_returns_403(self, gym, gateway) -> None:
        from django.test import Client

        plan = SubscriptionPlanFactory(gym=gym)
        client = Client()
        client.force_login(UserFactory())

        response = client.post(
            self.url,
            data={"gym_id": str(gym.id), "subscription_id": str(plan.id)},
            content_type="application/json",
        )

        assert response.status_code == 403
        assert gateway.created == []

    def test_plan_of_another_gym_returns_404(self, member_client, gym, gateway) -> None:
        plan = SubscriptionPlanFactory()

        response = member_client.post(
            self.url,
            data={"gym_id": str(gym.id), "subscription_id": str(plan.id)},
            content_type="application/json",
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Subscription plan not found"

    def test_unknown_gym_returns_404(self, member_client, gateway) -> None:
        response = member_client.post(
            self.url,
            data={"gym_id": str(uuid.uuid4()), "subscription_id": str(uuid.uuid4())},
            content_type="application/json",
        )

        assert response.status_code == 404

    def test_gateway_error_returns_500(self, member_client, gym, gateway) -> None:
        plan = SubscriptionPlanFactory(gym=gym)
        gateway.error = GatewayError(details="Invalid master key")

        response = member_client.post(
            self.url,
            data={"gym_id": str(gym.id), "subscription_id": str(plan.id)},
            content_type="application/json",
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Payment gateway error", "details": "Invalid master key"}
        assert Payment.objects.count() == 0


@pytest.mark.django_db
class TestConfirmPaymentEndpoint:
    """Tests for POST /api/v1/billing/confirm-payment."""

    url = "/api/v1/billing/confirm-payment"

    def test_applies_completed_invoice(self, member_client, gym, gateway) -> None:
        payment = PaymentFactory(subscription=SubscriptionPlanFactory(gym=gym))
        gateway.confirm_response = {"response_code": "00", "status": "completed"}

        response = member_client.post(
            self.url,
            data={"gym_id": str(gym.id), "payment_id": payment.payment_id},
            content_type="application/json",
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "applied"
        gym.refresh_from_db()
        assert gym.current_subscription_id == payment.subscription_id

    def test_unknown_payment_returns_404(self, member_client, gym, gateway) -> None:
        response = member_client.post(
            self.url,
            data={"gym_id": str(gym.id), "payment_id": "pay_missing"},
            content_type="application/json",
        )

        assert response.status_code == 404


@pytest.mark.django_db
class TestStatusEndpoint:
    """Tests for GET /api/v1/billing/status."""

    def test_trial_gym(self, member_client, gym) -> None:
        response = member_client.get("/api/v1/billing/status", {"gym_id": str(gym.id)})

        assert response.status_code == 200
        body = response.json()
        assert body["is_entitled"] is True
        assert body["is_trial_active"] is True
        assert body["current_subscription_id"] is None

    def test_lapsed_gym(self, member_client, gym) -> None:
        gym.trial_end_date = timezone.now() - timedelta(days=1)
        gym.subscription_active = False
        gym.save()

        response = member_client.get("/api/v1/billing/status", {"gym_id": str(gym.id)})

        assert response.json()["is_entitled"] is False

    def test_other_gym_forbidden(self, member_client) -> None:
        other = GymFactory()

        response = member_client.get("/api/v1/billing/status", {"gym_id": str(other.id)})

        assert response.status_code == 403


@pytest.mark.django_db
class TestPlansEndpoint:
    def test_lists_gym_plans(self, member_client, gym) -> None:
        provision_catalog(gym)
        SubscriptionPlanFactory()  # another gym's plan

        response = member_client.get("/api/v1/billing/plans", {"gym_id": str(gym.id)})

        assert response.status_code == 200
        plans = response.json()["plans"]
        assert [p["plan_id"] for p in plans] == [
            f"trial_{gym.id}",
            f"monthly_{gym.id}",
            f"annual_{gym.id}",
        ]
        assert plans[0]["is_trial"] is True
