"""
Shared Todo Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite file (tmp_path) wrapped in a
       `Database`, an app built around it with `create_app(database=...)`,
       and an HTTPX AsyncClient talking to that app in-process.

Fixture Hierarchy (all function-scoped):
    database ──▶ test_client ──▶ register ──▶ alice / bob / carol
                                  └── create_note
"""

import os
from typing import Dict, NamedTuple

# Override settings for testing BEFORE any sharedtodo imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-not-real-0123456789abcdef"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"  # fast hashing
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CLIENT_URL"] = "http://client.test"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from sharedtodo.database import Database
from sharedtodo.main import create_app

API = "/api/v1"
DEFAULT_PASSWORD = "Passw0rd!"


class Account(NamedTuple):
    id: str
    email: str
    name: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh schema per test; the file is removed with tmp_path."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'sharedtodo_test.db'}", echo=False)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient configured to talk to an app bound to `database`.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register(test_client):
    """Factory: register an account and return it as an `Account`."""

    async def _register(email: str, name: str = "Test User", password: str = DEFAULT_PASSWORD) -> Account:
        response = await test_client.post(
            f"{API}/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return Account(
            id=data["user"]["id"],
            email=data["user"]["email"],
            name=data["user"]["name"],
            token=data["token"],
        )

    return _register


@pytest_asyncio.fixture
async def alice(register) -> Account:
    return await register("alice@example.com", "Alice")


@pytest_asyncio.fixture
async def bob(register) -> Account:
    return await register("bob@example.com", "Bob")


@pytest_asyncio.fixture
async def carol(register) -> Account:
    return await register("carol@example.com", "Carol")


@pytest.fixture
def create_note(test_client):
    """Factory: create a note as `owner` and return its JSON body."""

    async def _create(owner: Account, title: str = "Groceries", content: str = "") -> dict:
        response = await test_client.post(
            f"{API}/notes",
            json={"title": title, "content": content},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def share(test_client):
    """Factory: share `note_id` with an existing account directly."""

    async def _share(owner: Account, note_id: str, member: Account, role: str = "viewer") -> dict:
        response = await test_client.post(
            f"{API}/notes/{note_id}/invite",
            json={"email": member.email, "role": role},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        body = response.json()["data"]
        assert body["type"] == "direct_addition"
        return body["collaborator"]

    return _share
