# =============================================================================
# BARANGAY AUTH SERVICE - TEST CONFIGURATION
# =============================================================================
# File: tests/conftest.py
# Description: Pytest fixtures: per-test SQLite database, app client, fakeredis
# =============================================================================

import os

# Settings are read once at import time, so the environment is set first
os.environ["APP_ENV"] = "development"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-characters!"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["SEED_TEST_USERS"] = "true"
os.environ["SEED_DEFAULT_PASSWORD"] = "SeedPass1!"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator, Callable, Dict, Optional

import fakeredis
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from barangay_auth.db.adapters.sqlite_adapter import SQLiteAdapter
from barangay_auth.db.adapters.redis_adapter import RedisAdapter
from barangay_auth.db.factory import DBFactory
from barangay_auth.main import create_application


SEED_PASSWORD = os.environ["SEED_DEFAULT_PASSWORD"]


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest_asyncio.fixture
async def db_adapter(tmp_path) -> AsyncGenerator[SQLiteAdapter, None]:
    """Fresh file-backed SQLite database for service-level tests."""
    adapter = SQLiteAdapter.create_for_testing(str(tmp_path / "service.db"))
    await adapter.connect()
    await adapter.create_tables()

    yield adapter

    await adapter.disconnect()


@pytest_asyncio.fixture
async def db_session(db_adapter: SQLiteAdapter) -> AsyncGenerator[AsyncSession, None]:
    async with db_adapter.get_session() as session:
        yield session


# =============================================================================
# REDIS FIXTURES
# =============================================================================

@pytest_asyncio.fixture
async def redis_adapter() -> AsyncGenerator[RedisAdapter, None]:
    """RedisAdapter backed by fakeredis."""
    adapter = RedisAdapter(client=fakeredis.FakeAsyncRedis(decode_responses=True))
    await adapter.connect()

    yield adapter

    await adapter.disconnect()


# =============================================================================
# APPLICATION FIXTURES
# =============================================================================

@pytest.fixture
def client(tmp_path) -> TestClient:
    """
    Test client for a fresh application and database.

    The lifespan creates the tables and seeds admin, official1 and
    resident1 (all active, password SEED_PASSWORD).
    """
    DBFactory.reset()
    DBFactory._db_adapter = SQLiteAdapter.create_for_testing(str(tmp_path / "api.db"))

    with TestClient(create_application()) as test_client:
        yield test_client

    DBFactory.reset()


# =============================================================================
# DATA FIXTURES
# =============================================================================

@pytest.fixture
def registration_data() -> Dict:
    """A valid registration form."""
    return {
        "firstName": "Juan",
        "lastName": "Dela Cruz",
        "dateOfBirth": "1995-06-15",
        "purok": "Purok 3",
        "phoneNumber": "09171234567",
        "username": "juan",
        "email": "juan@example.com",
        "password": "SecurePass1!",
        "acceptedTerms": True,
        "acceptedPrivacy": True,
    }


@pytest.fixture
def login(client: TestClient) -> Callable[..., Dict]:
    """Log in and return the response body; asserts success."""

    def _login(username: str, password: str = SEED_PASSWORD) -> Dict:
        response = client.post(
            "/api/auth/login",
            json={"username": username, "password": password},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _login


def bearer(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(login) -> Dict[str, str]:
    return bearer(login("admin")["accessToken"])
