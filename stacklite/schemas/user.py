"""
StackLite Backend — User Schemas
==================================

Request envelopes keep the submitted fields as a loose mapping: the
validation layer (stacklite.validators) owns every field rule and message,
so pydantic only checks the envelope shape here.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import Field

from stacklite.schemas.common import APIModel


class SignupRequest(APIModel):
    """Body of POST /api/users/signup: {"registerUser": {...}}"""

    register_user: Optional[Dict[str, Any]] = None


class LoginRequest(APIModel):
    """Body of POST /api/users/login: {"credentials": {"email", "password"}}"""

    credentials: Optional[Dict[str, Any]] = None


class UserOut(APIModel):
    """A user as returned by the API; never includes the password hash."""

    id: UUID = Field(alias="_id")
    first_name: str
    last_name: str
    user_name: str
    email: str
    avatar: Optional[str] = None
    confirmed: bool
    is_admin: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SignupResponse(APIModel):
    status: str
    message: str
    user: UserOut


class LoginUser(APIModel):
    email: str
    first_name: str
    last_name: str
    user_name: str
    avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class LoginResponse(APIModel):
    status: str
    message: str
    token: str
    user: LoginUser
