"""
Gyms API schemas.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema
from pydantic import Field


class CreateGymRequest(Schema):
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field("", max_length=255)
    city: str = Field("", max_length=100)
    phone: str = Field("", max_length=32)


class GymResponse(Schema):
    """A gym with its entitlement fields."""

    id: UUID
    name: str
    address: str
    city: str
    phone: str
    subscription_active: bool
    trial_end_date: datetime | None
    trial_used: bool
