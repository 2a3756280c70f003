"""
StackLite Backend — FastAPI Dependencies
==========================================

What:  Providers injected into route handlers: the credential subsystem and
       the authenticated caller.
Why:   Routes never read the secret key or parse headers themselves; tests
       swap providers through `app.dependency_overrides`.

Auth guard behavior:
    No Authorization header        → 401 {"message": "Access denied. No token provided"}
    Bad / expired / forged token   → 400 {"name": ..., "message": ...}
    Token for a missing user, or
    issued before a password change → 400 (same shape)
    Accepted header forms: "<token>" and "Bearer <token>".
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from stacklite.config import settings
from stacklite.database import get_db_session
from stacklite.exceptions import InvalidTokenError, UnauthenticatedError
from stacklite.models.user import User
from stacklite.security import Credentials

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_credentials() -> Credentials:
    """Credential subsystem configured from settings (built once)."""
    return Credentials(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        expiry_seconds=settings.token_expiry_seconds,
        bcrypt_rounds=settings.bcrypt_rounds,
    )


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller of a request."""

    id: UUID
    email: str
    user_name: str
    is_admin: bool


def _extract_token(authorization: str) -> str:
    scheme, _, rest = authorization.strip().partition(" ")
    if scheme.lower() == "bearer" and rest:
        return rest.strip()
    return authorization.strip()


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
    credentials: Credentials = Depends(get_credentials),
) -> CurrentUser:
    if not authorization or not authorization.strip():
        raise UnauthenticatedError(errors={"message": "Access denied. No token provided"})

    claims = credentials.verify_token(_extract_token(authorization))

    try:
        user_id = UUID(claims.id)
    except ValueError:
        raise InvalidTokenError(name="InvalidTokenError", message="Malformed subject claim")

    user = await db.get(User, user_id)
    if user is None or user.password != claims.password_hash:
        logger.info("Rejected token for user %s: account missing or password changed", claims.id)
        raise InvalidTokenError(
            name="InvalidTokenError",
            message="Token no longer matches an active account",
        )

    return CurrentUser(
        id=user.id,
        email=user.email,
        user_name=user.user_name,
        is_admin=user.is_admin,
    )
