"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.gyms.factories import UserFactory, GymFactory, MemberFactory
    from tests.billing.factories import SubscriptionPlanFactory, PaymentFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        gym = GymFactory.create()
        plan = SubscriptionPlanFactory.create(gym=gym, price=25000)
"""

from typing import Any

import pytest
from django.test import Client

from apps.billing.paydunya_client import Invoice
from tests.gyms.factories import GymFactory, MemberFactory, UserFactory


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def gym(db) -> Any:
    """A gym with an open trial and no paid window."""
    return GymFactory.create()


@pytest.fixture
def member(gym) -> Any:
    """Owner membership of ``gym``."""
    return MemberFactory.create(gym=gym, role="owner")


@pytest.fixture
def member_client(member) -> Client:
    """Client logged in as a member of ``gym``."""
    client = Client()
    client.force_login(member.user)
    return client


@pytest.fixture
def platform_admin(db) -> Any:
    return UserFactory.create(is_staff=True)


@pytest.fixture
def admin_client(platform_admin) -> Client:
    """Client logged in as a platform admin."""
    client = Client()
    client.force_login(platform_admin)
    return client


class FakePaydunyaClient:
    """
    In-memory stand-in for PaydunyaClient.

    Records every invoice request; confirm responses are configured per test.
    """

    def __init__(self, url: str = "https://paydunya.com/checkout/invoice/tok_123", token: str = "tok_123"):
        self.url = url
        self.token = token
        self.created: list[dict[str, Any]] = []
        self.confirm_response: dict[str, Any] = {}
        self.error: Exception | None = None

    def create_invoice(self, amount, customer, metadata) -> Invoice:
        if self.error is not None:
            raise self.error
        self.created.append({"amount": amount, "customer": customer, "metadata": metadata})
        return Invoice(url=self.url, token=self.token)

    def confirm_invoice(self, invoice_token: str) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        return self.confirm_response


@pytest.fixture
def fake_gateway() -> FakePaydunyaClient:
    return FakePaydunyaClient()
