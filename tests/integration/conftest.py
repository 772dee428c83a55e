"""Fixtures for API integration tests against a file-backed SQLite database."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from poll_api.core.config import Settings, get_settings
from poll_api.core.database import Database
from poll_api.core.dependencies import get_notifier
from poll_api.core.security import hash_password
from poll_api.main import create_app
from poll_api.models.base import Base
from poll_api.models.identity import Identity
from poll_api.models.poll import Poll

VOTER_PASSWORD = "voterpass"


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database]:
    """An isolated database with the schema created."""
    db = Database.open(f"sqlite+aiosqlite:///{tmp_path / 'polls.db'}")
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
def app(settings: Settings, database: Database, notifier) -> FastAPI:
    """The full application wired to the test database and notifier."""
    with patch("poll_api.main.get_settings", return_value=settings):
        application = create_app()
    application.state.database = database
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_notifier] = lambda: notifier
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Code": "test-admin-code"}


@pytest.fixture
def make_poll(database: Database) -> Callable[..., Awaitable[str]]:
    """Insert a poll directly and return its id as a string."""

    async def _make(title: str = "Longer lunch break?", *, active: bool = True) -> str:
        async with database.session() as session:
            poll = Poll(title=title, active=active)
            session.add(poll)
            await session.commit()
            return str(poll.id)

    return _make


@pytest.fixture
def make_voter(database: Database, client: AsyncClient) -> Callable[..., Awaitable[dict[str, str]]]:
    """Insert an identity and return its Authorization header.

    Pending identities cannot log in, so an empty header is returned for them.
    """

    async def _make(email: str, *, verified: bool = True) -> dict[str, str]:
        async with database.session() as session:
            session.add(Identity(email=email, credential_hash=hash_password(VOTER_PASSWORD), verified=verified))
            await session.commit()
        if not verified:
            return {}
        response = await client.post("/api/auth/login", json={"email": email, "password": VOTER_PASSWORD})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _make
