"""
Common Pydantic schemas shared across the API.
"""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema with ORM support."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


class MessageResponse(BaseSchema):
    """Fixed acknowledgment returned to the notification sender."""

    message: str = Field(..., examples=["Flow Updated"])


class ErrorResponse(BaseSchema):
    """Structured error body."""

    error: str = Field(..., description="Error class name")
    message: str = Field(..., description="Human readable message")
    details: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    checks: Dict[str, bool]
