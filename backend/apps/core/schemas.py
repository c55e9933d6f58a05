"""
Core schemas - shared Pydantic models for API responses.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(None, description="Extra context, e.g. missing field names")

    model_config = {
        "json_schema_extra": {
            "example": {"error": "Missing parameters", "details": ["gym_id"]},
        }
    }
