"""
StackLite Backend — Input Validation
======================================

What:  Pure functions checking shape, length and format of submitted fields.
Why:   Clients rely on the exact field keys and messages below to render
       form errors, so they are kept stable.
How:   Each validator normalizes missing/blank values to "" and then runs
       its rules in a fixed order WITHOUT short-circuiting. When several
       rules fail for the same field, the rule evaluated last wins.
Who:   Called by UserService and QuestionService before touching the store.

Example:
    >>> validate_question_input({"question": "Hi"}).errors
    {'question': 'The minimum character expected is 3 while maximum is 255'}
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

# ≥8 chars, one upper, one lower, one digit, one of @#$%&^+=!
PASSWORD_PATTERN = re.compile(
    r"^(?=.{8,}$)(?=.*[A-Z])(?=.*[a-z])(?=.*[0-9])(?=.*[@#$%&^+=!]).*"
)

PASSWORD_HINT = (
    "A good password should contain uppercase, lowercase, special characters "
    "@#$%&^+=! , digits and above 8 characters"
)


@dataclass
class ValidationResult:
    """Outcome of one validator: field → message map plus validity flag."""

    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _normalize(value: Any) -> str:
    """Missing, None or whitespace-only values become ""; others become str."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)) and not value:
        return ""
    text = value if isinstance(value, str) else str(value)
    if not text.strip():
        return ""
    return text


def _length_between(value: str, min_length: int = 0, max_length: Optional[int] = None) -> bool:
    if len(value) < min_length:
        return False
    return max_length is None or len(value) <= max_length


def is_email(value: str) -> bool:
    """Email-address grammar check (no DNS lookups); `.test` domains are accepted."""
    try:
        validate_email(value, check_deliverability=False, test_environment=True)
    except EmailNotValidError:
        return False
    return True


def validate_signup_input(data: Optional[Mapping[str, Any]]) -> ValidationResult:
    data = data or {}
    first_name = _normalize(data.get("firstName"))
    last_name = _normalize(data.get("lastName"))
    user_name = _normalize(data.get("userName"))
    email = _normalize(data.get("email"))
    password = _normalize(data.get("password"))
    confirm_password = _normalize(data.get("confirmPassword"))

    errors: Dict[str, str] = {}

    if not _length_between(first_name, 1, 20):
        errors["firstName"] = "First name must be between 1 and 20 characters"
    if not first_name:
        errors["firstName"] = "First name field is required"

    if not _length_between(last_name, 1, 20):
        errors["lastName"] = "Last name must be between 1 and 20 characters"
    if not last_name:
        errors["lastName"] = "Last name field is required"

    if not _length_between(user_name, 1, 20):
        errors["userName"] = "User name must be between 1 and 20 characters"
    if not user_name:
        errors["userName"] = "User name field is required"

    if not is_email(email):
        errors["email"] = "Email is invalid"
    if not email:
        errors["email"] = "Email field is required"

    if not PASSWORD_PATTERN.search(password):
        errors["password"] = PASSWORD_HINT
    if not password:
        errors["password"] = "Password field is required"

    if password != confirm_password:
        errors["confirmPassword"] = "Passwords must match!!!"
    if not confirm_password:
        errors["confirmPassword"] = "Confirm password field is required"

    return ValidationResult(errors)


def validate_login_input(data: Optional[Mapping[str, Any]]) -> ValidationResult:
    data = data or {}
    email = _normalize(data.get("email"))
    password = _normalize(data.get("password"))

    errors: Dict[str, str] = {}

    if not is_email(email):
        errors["email"] = "Email is invalid"
    if not email:
        errors["email"] = "Email field is required"

    if not password:
        errors["password"] = "Password field is required"

    return ValidationResult(errors)


def validate_question_input(data: Optional[Mapping[str, Any]]) -> ValidationResult:
    question = _normalize((data or {}).get("question"))
    errors: Dict[str, str] = {}

    if not _length_between(question, 3, 255):
        errors["question"] = "The minimum character expected is 3 while maximum is 255"
    if not question:
        errors["question"] = "Question field is required"

    return ValidationResult(errors)


def validate_answer_input(data: Optional[Mapping[str, Any]]) -> ValidationResult:
    # Order differs from questions: the length rule runs last, so an empty
    # answer reports the length message.
    answer = _normalize((data or {}).get("answer"))
    errors: Dict[str, str] = {}

    if not answer:
        errors["answer"] = "Answer field is required"
    if not _length_between(answer, 5, 400):
        errors["answer"] = "The minimum character expected is 5 while maximum is 400"

    return ValidationResult(errors)


def validate_comment_input(data: Optional[Mapping[str, Any]]) -> ValidationResult:
    comment = _normalize((data or {}).get("comment"))
    errors: Dict[str, str] = {}

    if not comment:
        errors["comment"] = "Comment field is required"
    # Message mentions a minimum of 1; only the maximum is checked here
    if not _length_between(comment, max_length=100):
        errors["comment"] = "The minimum character expected is 1 while maximum is 100"

    return ValidationResult(errors)
