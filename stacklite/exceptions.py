"""
StackLite Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for every failure kind.
Why:   One tagged error type with a stable serialization contract replaces
       ad-hoc error dicts and raw store errors in responses.
How:   Each exception class fixes its HTTP status code and carries an
       `errors` map (field or reason → message) plus optional `extra`
       top-level payload. The global handler in main.py renders all of them
       through `StackLiteError.to_payload()`.
Who:   Raised by validators, security, services and dependencies.
When:  During request processing when a request cannot be completed.

Exception Hierarchy:
    StackLiteError (base)          → 500
    ├── ValidationFailedError      → 400 Bad Request (field → message map)
    ├── NoResultError              → 400 Bad Request (query has nothing to rank)
    ├── InvalidTokenError          → 400 Bad Request (raw token error payload)
    ├── UnauthenticatedError       → 401 Unauthorized
    ├── ForbiddenError             → 401 Unauthorized (ownership, same code as auth)
    ├── NotFoundError              → 404 Not Found
    ├── ConflictError              → 409 Conflict (duplicate / invariant violation)
    └── DatabaseError              → 500 Internal Server Error

Response contract:
    {
        "status": "409",
        "errors": {"alreadyUpvoted": "You have already upvoted this answer"},
        "request_id": "a1b2c3d4"
    }
"""

from typing import Any, Dict, Optional


class StackLiteError(Exception):
    """
    Base exception for all StackLite application errors.

    Attributes:
        status_code: HTTP status returned to the client
        errors:      Key → message map (safe to return in API response)
        extra:       Additional top-level response fields (e.g. a link hint)
        context:     Debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        errors: Optional[Dict[str, Any]] = None,
        extra: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors or {"global": "An unexpected error occurred"}
        self.extra = extra or {}
        self.context = context or {}
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """First error message, used for log lines."""
        return str(next(iter(self.errors.values()), ""))

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": str(self.status_code), "errors": self.errors}
        payload.update(self.extra)
        return payload


class ValidationFailedError(StackLiteError):
    """
    Raised when submitted fields fail the validation layer.

    The `errors` map is exactly the one produced by stacklite.validators,
    e.g. {"password": "Password field is required"}.
    """

    status_code = 400


class NoResultError(StackLiteError):
    """Raised when a query has candidates but none qualifies (most-answered)."""

    status_code = 400


class InvalidTokenError(StackLiteError):
    """
    Raised when a bearer token is malformed, expired or has a bad signature.

    HTTP: 400 with the raw verification error as payload:
        {"status": "400", "errors": {"name": "ExpiredSignatureError",
                                     "message": "Signature has expired"}}
    """

    status_code = 400

    def __init__(self, name: str, message: str):
        super().__init__(errors={"name": name, "message": message})


class UnauthenticatedError(StackLiteError):
    """Raised when no token is supplied or login credentials don't match."""

    status_code = 401


class ForbiddenError(StackLiteError):
    """
    Raised when the caller is authenticated but doesn't own the resource.

    Shares 401 with authentication failures; the error key tells them apart.
    """

    status_code = 401


class NotFoundError(StackLiteError):
    """Raised when a question or answer doesn't exist, or a listing is empty."""

    status_code = 404


class ConflictError(StackLiteError):
    """
    Raised on duplicates and on thread invariant violations.

    Examples: duplicate question text, editing an answered question,
    accepting a second answer, voting twice, a concurrent modification
    detected by the question version column.
    """

    status_code = 409


class DatabaseError(StackLiteError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. Details
        (SQL, constraint names) go to `context` and are logged server-side.
    """

    status_code = 500

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            errors={"global": "A database error occurred. Please try again later."},
            context=context,
        )
