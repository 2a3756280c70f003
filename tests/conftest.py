"""
StackLite Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The environment is forced to `testing` before stacklite is imported,
       so settings and the engine point at a throwaway SQLite file.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── credentials:     Credentials with the test secret and cheap bcrypt
    ├── db_schema:       Creates all tables, drops them afterwards
    ├── test_client:     HTTPX AsyncClient bound to the app (needs db_schema)
    ├── register_user:   Factory: sign up + log in, returns auth headers
    └── owner / other:   Two ready-made users with headers
"""

import os
import tempfile
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

# Must run before any stacklite import: settings and engine read these once
_TEST_DIR = tempfile.mkdtemp(prefix="stacklite_test_")
os.environ["ENVIRONMENT"] = "testing"
os.environ["TEST_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/stacklite_test.db"
os.environ["SECRET_KEY"] = "stacklite-test-secret-key-with-enough-length-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from stacklite.security import Credentials  # noqa: E402

DEFAULT_PASSWORD = "Secr3t@pass"


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value.one_or_none.return_value = (row, "name")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def credentials():
    return Credentials(
        secret_key=os.environ["SECRET_KEY"],
        expiry_seconds=3600,
        bcrypt_rounds=4,
    )


@pytest_asyncio.fixture
async def db_schema():
    """Fresh tables for one test; the engine is disposed so no connection outlives the loop."""
    from stacklite.database import Base, engine
    import stacklite.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(db_schema):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from stacklite.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def signup_payload(user_name: str, **overrides: Any) -> Dict[str, Any]:
    data = {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "userName": user_name,
        "email": f"{user_name.lower()}@gmail.com",
        "password": DEFAULT_PASSWORD,
        "confirmPassword": DEFAULT_PASSWORD,
    }
    data.update(overrides)
    return {"registerUser": data}


@pytest.fixture
def register_user(test_client):
    """
    Factory fixture: sign a user up, log them in, return their details.

    Returns a dict with `id`, `email`, `token` and ready-to-use `headers`.
    """

    async def _register(user_name: str) -> Dict[str, Any]:
        signup = await test_client.post("/api/users/signup", json=signup_payload(user_name))
        assert signup.status_code == 201, signup.text
        email = signup.json()["user"]["email"]

        login = await test_client.post(
            "/api/users/login",
            json={"credentials": {"email": email, "password": DEFAULT_PASSWORD}},
        )
        assert login.status_code == 200, login.text
        token = login.json()["token"]
        return {
            "id": signup.json()["user"]["_id"],
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _register


@pytest_asyncio.fixture
async def owner(register_user):
    return await register_user("owner")


@pytest_asyncio.fixture
async def other(register_user):
    return await register_user("other")


@pytest.fixture
def signup_body():
    """Factory for a valid signup envelope; keyword overrides replace fields."""
    return signup_payload


@pytest.fixture
def password():
    return DEFAULT_PASSWORD
