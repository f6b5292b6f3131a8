"""Test fixtures — a fresh app on in-memory SQLite per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app from explicit Settings (no env vars).
2. The database is in-memory SQLite on a single shared connection
   (StaticPool), created fresh per test, so nothing leaks between tests.
3. bcrypt runs at its minimum cost (4) so hashing stays fast.

httpx's ASGITransport does not run the lifespan, so the schema is
created here directly.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from userauth.auth.dependencies import CurrentIdentity, get_current_user
from userauth.auth.jwt import TokenService
from userauth.auth.password import PasswordHasher
from userauth.config import Settings
from userauth.db.engine import create_schema
from userauth.main import create_app

TEST_SECRET = "test-secret-0123456789abcdefghijklmnop"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "hash_workers": 2,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings():
    return make_settings()


@pytest.fixture()
def hasher():
    h = PasswordHasher(rounds=4, max_workers=2)
    yield h
    h.shutdown()


@pytest.fixture()
def token_service():
    return TokenService(secret=TEST_SECRET)


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await create_schema(app.state.engine)
    yield app
    app.state.password_hasher.shutdown()
    await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def db_session(app):
    """Session on the same in-memory database the app uses."""
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client running the real auth pipeline."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def register(client):
    """Register a user and return (user_payload, token)."""

    async def _register(username="alice", password="secret1", **extra):
        body = {
            "username": username,
            "email": extra.get("email", f"{username}@example.com"),
            "fullName": extra.get("fullName", username.title()),
            "password": password,
        }
        r = await client.post("/api/users", json=body)
        assert r.status_code == 200, r.text
        return body, r.json()["token"]

    return _register


@pytest.fixture()
def auth_header():
    def _header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest_asyncio.fixture()
async def impersonating_client(app):
    """HTTP client with get_current_user overridden to a fixed identity.

    Learn: Lets a test act as an arbitrary user id without minting a
    token, e.g. to check the ownership rule on /api/users/{id}.
    """
    import uuid

    identity = CurrentIdentity(user_id=uuid.UUID("00000000-0000-0000-0000-000000000001"))
    app.dependency_overrides[get_current_user] = lambda: identity

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
