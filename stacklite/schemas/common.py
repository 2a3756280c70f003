"""
StackLite Backend — Shared Schemas
====================================

What:  Base model with the wire naming convention, plus the error and
       health response shapes used across routers.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for every request/response model: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OwnerRef(APIModel):
    id: UUID = Field(alias="_id")


class Owner(APIModel):
    id: UUID = Field(alias="_id")
    user_name: str


class MessageResponse(APIModel):
    status: str
    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "status": "404",
            "errors": {"notFound": "Question by that id not found"},
            "request_id": "a1b2c3d4"
        }
    """

    status: str = Field(description="HTTP status code, as a string")
    errors: Dict[str, Any] = Field(description="Error key → message")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(APIModel):
    """Service and database status for load balancers and Docker health checks."""

    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
