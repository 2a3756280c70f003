"""
StackLite Backend — User Route Handlers
=========================================

What:  POST /api/users/signup and POST /api/users/login.
How:   Unwraps the request envelope and delegates to UserService.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stacklite.database import get_db_session
from stacklite.dependencies import get_credentials
from stacklite.schemas.common import ErrorResponse
from stacklite.schemas.user import LoginRequest, LoginResponse, SignupRequest, SignupResponse
from stacklite.security import Credentials
from stacklite.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SignupResponse,
    responses={
        400: {"description": "Field validation failed", "model": ErrorResponse},
        409: {"description": "Email or user name already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
    credentials: Credentials = Depends(get_credentials),
) -> SignupResponse:
    return await user_service.signup(db, credentials, body.register_user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Field validation failed", "model": ErrorResponse},
        401: {"description": "Unknown email or wrong password", "model": ErrorResponse},
    },
    summary="Log in and receive an access token",
    description="The token is valid for one hour and goes in the Authorization header.",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    credentials: Credentials = Depends(get_credentials),
) -> LoginResponse:
    return await user_service.login(db, credentials, body.credentials)
