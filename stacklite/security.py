"""
StackLite Backend — Credential Subsystem
==========================================

What:  Password hashing/verification and signed access-token issuance.
Why:   Keeps every cryptographic call behind one small object that is built
       from an injected secret, instead of reading a process-wide key.
How:   bcrypt for salted one-way password hashes; PyJWT (HS256) for tokens
       with a fixed lifetime.
Who:   UserService (signup/login) and the auth dependency (token checks).

Token claims:
    {
        "id": "<user uuid>",
        "email": "developer@gmail.com",
        "passwordHash": "$2b$10$...",
        "isAdmin": false,
        "iat": 1700000000,
        "exp": 1700003600
    }

    The current password hash travels inside the token. The auth dependency
    compares it with the stored hash, so changing a password invalidates
    every token issued before the change.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from stacklite.exceptions import InvalidTokenError

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating
BCRYPT_MAX_BYTES = 72


def _password_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by an access token."""

    id: str
    email: str
    password_hash: str
    is_admin: bool = False

    def to_jwt(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "passwordHash": self.password_hash,
            "isAdmin": self.is_admin,
        }

    @classmethod
    def from_jwt(cls, payload: Dict[str, Any]) -> "TokenClaims":
        return cls(
            id=str(payload["id"]),
            email=payload.get("email", ""),
            password_hash=payload.get("passwordHash", ""),
            is_admin=bool(payload.get("isAdmin", False)),
        )


class Credentials:
    """
    Hashes passwords and issues/verifies tokens for one secret key.

    Stateless apart from its configuration; one instance per settings object
    is built by stacklite.dependencies.get_credentials().
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expiry_seconds: int = 3600,
        bcrypt_rounds: int = 10,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expiry = timedelta(seconds=expiry_seconds)
        self._rounds = bcrypt_rounds

    # ── Passwords ─────────────────────────────────────────────────────────

    def hash_password(self, plaintext: str) -> str:
        """Salted bcrypt hash; two calls with the same input never match."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_password_bytes(plaintext), salt).decode("utf-8")

    def verify_password(self, plaintext: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_password_bytes(plaintext), password_hash.encode("utf-8"))
        except ValueError:
            # Stored value isn't a bcrypt hash
            return False

    # ── Tokens ────────────────────────────────────────────────────────────

    def issue_token(self, claims: TokenClaims) -> str:
        now = datetime.now(timezone.utc)
        payload = claims.to_jwt()
        payload.update(iat=now, exp=now + self._expiry)
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """
        Decode and verify a token.

        Raises:
            InvalidTokenError: bad signature, expired, malformed, or missing claims
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "id"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError(name=type(e).__name__, message=str(e))
        return TokenClaims.from_jwt(payload)
