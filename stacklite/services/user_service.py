"""
StackLite Backend — User Service
==================================

What:  Signup and login.
How:   validate → uniqueness checks → hash/verify via Credentials → persist.
Who:   Called by the /api/users route handlers.

Error Handling Strategy:
    Validation problems → ValidationFailedError (400)
    Duplicate email / user name → ConflictError (409)
    Unknown email / wrong password → UnauthenticatedError (401)
    Anything the database throws → DatabaseError (500), details logged only
"""

import hashlib
import logging
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stacklite.exceptions import (
    ConflictError,
    DatabaseError,
    StackLiteError,
    UnauthenticatedError,
    ValidationFailedError,
)
from stacklite.models.user import User
from stacklite.schemas.user import LoginResponse, LoginUser, SignupResponse, UserOut
from stacklite.security import Credentials, TokenClaims
from stacklite.validators import validate_login_input, validate_signup_input

logger = logging.getLogger(__name__)

USER_NAME_TAKEN = {"userName": "User name already taken"}


def gravatar_url(email: str, size: int = 200) -> str:
    """Gravatar image URL for an email (mystery-man fallback, PG rating)."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    query = urlencode({"s": str(size), "r": "pg", "d": "mm"})
    return f"https://www.gravatar.com/avatar/{digest}?{query}"


class UserService:
    """Stateless; receives the session and credentials on every call."""

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def signup(
        self,
        db: AsyncSession,
        credentials: Credentials,
        data: Optional[Mapping[str, Any]],
    ) -> SignupResponse:
        """
        Register a new user.

        Returns:
            SignupResponse with the created user (no password)

        Raises:
            ValidationFailedError: field rules failed
            ConflictError: email already registered or user name taken
        """
        validation = validate_signup_input(data)
        if not validation.is_valid:
            raise ValidationFailedError(errors=validation.errors)

        email = str(data["email"]).strip().lower()
        user_name = str(data["userName"])

        try:
            if await self._find_by_email(db, email) is not None:
                raise ConflictError(errors={"global": "Email already exists"})

            taken = await db.execute(select(User.id).where(User.user_name == user_name))
            if taken.scalar_one_or_none() is not None:
                raise ConflictError(errors=dict(USER_NAME_TAKEN))

            user = User(
                first_name=str(data["firstName"]),
                last_name=str(data["lastName"]),
                user_name=user_name,
                email=email,
                avatar=gravatar_url(email),
                password=credentials.hash_password(str(data["password"])),
            )
            db.add(user)
            await db.flush()
        except StackLiteError:
            raise
        except IntegrityError:
            # Lost a race with a concurrent signup for the same user name/email
            raise ConflictError(errors=dict(USER_NAME_TAKEN))
        except SQLAlchemyError as e:
            logger.error("Database error during signup: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "signup"})

        logger.info("User %s signed up (%s)", user.id, user.user_name)
        return SignupResponse(
            status="201",
            message=f"Account created for {email}",
            user=UserOut.model_validate(user),
        )

    async def login(
        self,
        db: AsyncSession,
        credentials: Credentials,
        data: Optional[Mapping[str, Any]],
    ) -> LoginResponse:
        """
        Check credentials and issue an access token.

        Raises:
            ValidationFailedError: email/password missing or email malformed
            UnauthenticatedError: unknown email or wrong password
        """
        validation = validate_login_input(data)
        if not validation.is_valid:
            raise ValidationFailedError(errors=validation.errors)

        email = str(data["email"])

        try:
            user = await self._find_by_email(db, email)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "login"})

        if user is None:
            raise UnauthenticatedError(
                errors={"global": "Failed to log in. Confirm email and password"}
            )
        if not credentials.verify_password(str(data["password"]), user.password):
            logger.info("Failed login for user %s", user.id)
            raise UnauthenticatedError(errors={"global": "Invalid credentials"})

        token = credentials.issue_token(
            TokenClaims(
                id=str(user.id),
                email=user.email,
                password_hash=user.password,
                is_admin=user.is_admin,
            )
        )
        return LoginResponse(
            status="200",
            message=f"You have logged in as {email}",
            token=token,
            user=LoginUser.model_validate(user),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
