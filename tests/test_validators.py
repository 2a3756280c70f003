"""
StackLite Backend — Validation Unit Tests
===========================================

What we test:
    ✅ Field keys and exact messages clients render
    ✅ Missing / blank values are treated as empty
    ✅ When two rules fail on one field, the later rule's message wins
"""

from stacklite.validators import (
    PASSWORD_HINT,
    validate_answer_input,
    validate_comment_input,
    validate_login_input,
    validate_question_input,
    validate_signup_input,
)


def _signup(**overrides):
    data = {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "userName": "ada",
        "email": "ada@gmail.com",
        "password": "Secr3t@pass",
        "confirmPassword": "Secr3t@pass",
    }
    data.update(overrides)
    return data


class TestSignupValidation:

    def test_valid_input(self):
        result = validate_signup_input(_signup())
        assert result.is_valid
        assert result.errors == {}

    def test_missing_body_reports_every_field_as_required(self):
        result = validate_signup_input(None)
        assert result.errors == {
            "firstName": "First name field is required",
            "lastName": "Last name field is required",
            "userName": "User name field is required",
            "email": "Email field is required",
            "password": "Password field is required",
            "confirmPassword": "Confirm password field is required",
        }

    def test_whitespace_counts_as_missing(self):
        result = validate_signup_input(_signup(firstName="   "))
        assert result.errors == {"firstName": "First name field is required"}

    def test_name_too_long(self):
        result = validate_signup_input(_signup(lastName="x" * 21))
        assert result.errors == {"lastName": "Last name must be between 1 and 20 characters"}

    def test_user_name_at_limit_is_accepted(self):
        assert validate_signup_input(_signup(userName="u" * 20)).is_valid

    def test_invalid_email(self):
        result = validate_signup_input(_signup(email="not-an-email"))
        assert result.errors == {"email": "Email is invalid"}

    def test_test_domain_email_is_accepted(self):
        assert validate_signup_input(_signup(email="dev@site.test")).is_valid

    def test_weak_password(self):
        result = validate_signup_input(
            _signup(password="password", confirmPassword="password")
        )
        assert result.errors == {"password": PASSWORD_HINT}

    def test_password_mismatch(self):
        result = validate_signup_input(_signup(confirmPassword="Secr3t@pasX"))
        assert result.errors == {"confirmPassword": "Passwords must match!!!"}

    def test_empty_confirm_password_reports_required_not_mismatch(self):
        result = validate_signup_input(_signup(confirmPassword=""))
        assert result.errors == {"confirmPassword": "Confirm password field is required"}


class TestLoginValidation:

    def test_valid(self):
        assert validate_login_input({"email": "ada@gmail.com", "password": "x"}).is_valid

    def test_missing_fields(self):
        result = validate_login_input({})
        assert result.errors == {
            "email": "Email field is required",
            "password": "Password field is required",
        }

    def test_malformed_email(self):
        result = validate_login_input({"email": "ada@", "password": "x"})
        assert result.errors == {"email": "Email is invalid"}


class TestQuestionValidation:

    def test_valid(self):
        assert validate_question_input({"question": "How do I sort a dict?"}).is_valid

    def test_missing(self):
        result = validate_question_input({})
        assert result.errors == {"question": "Question field is required"}

    def test_too_short(self):
        result = validate_question_input({"question": "Hi"})
        assert result.errors == {
            "question": "The minimum character expected is 3 while maximum is 255"
        }

    def test_too_long(self):
        result = validate_question_input({"question": "q" * 256})
        assert not result.is_valid

    def test_boundaries(self):
        assert validate_question_input({"question": "abc"}).is_valid
        assert validate_question_input({"question": "q" * 255}).is_valid


class TestAnswerValidation:

    def test_valid(self):
        assert validate_answer_input({"answer": "Use sorted()"}).is_valid

    def test_empty_answer_reports_length_message(self):
        # Length rule runs after the required rule
        result = validate_answer_input({"answer": ""})
        assert result.errors == {
            "answer": "The minimum character expected is 5 while maximum is 400"
        }

    def test_too_short(self):
        result = validate_answer_input({"answer": "abcd"})
        assert not result.is_valid

    def test_too_long(self):
        assert not validate_answer_input({"answer": "a" * 401}).is_valid
        assert validate_answer_input({"answer": "a" * 400}).is_valid


class TestCommentValidation:

    def test_valid(self):
        assert validate_comment_input({"comment": "+1"}).is_valid

    def test_missing(self):
        result = validate_comment_input({})
        assert result.errors == {"comment": "Comment field is required"}

    def test_too_long(self):
        result = validate_comment_input({"comment": "c" * 101})
        assert result.errors == {
            "comment": "The minimum character expected is 1 while maximum is 100"
        }
