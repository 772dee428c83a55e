"""Shared test fixtures for async database, sessions, identities, polls, and tokens."""

import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from poll_api.core.config import Settings
from poll_api.core.database import create_engine
from poll_api.core.security import create_access_token, hash_password
from poll_api.models.base import Base
from poll_api.models.identity import Identity
from poll_api.models.poll import Poll

TEST_PASSWORD = "testpassword123"


class RecordingNotifier:
    """Notifier double that remembers every code it was asked to send."""

    def __init__(self) -> None:
        self.verification: list[tuple[str, str]] = []
        self.reset: list[tuple[str, str]] = []

    async def send_verification_code(self, email: str, code: str) -> None:
        self.verification.append((email, code))

    async def send_password_reset_code(self, email: str, code: str) -> None:
        self.reset.append((email, code))

    def last_code(self, email: str) -> str:
        sent = [c for e, c in self.verification + self.reset if e == email]
        return sent[-1]


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        admin_code="test-admin-code",
        allowed_email_domain="school.test",
        password_min_length=4,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine with FK enforcement."""
    engine = create_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def verified_identity(async_session: AsyncSession) -> Identity:
    """A verified identity able to vote."""
    identity = Identity(
        id=uuid.uuid4(),
        email="anna.schmidt@school.test",
        credential_hash=hash_password(TEST_PASSWORD),
        verified=True,
    )
    async_session.add(identity)
    await async_session.commit()
    await async_session.refresh(identity)
    return identity


@pytest.fixture
async def pending_identity(async_session: AsyncSession) -> Identity:
    """A registered identity that has not confirmed its code yet."""
    identity = Identity(
        id=uuid.uuid4(),
        email="ben.keller@school.test",
        credential_hash=hash_password(TEST_PASSWORD),
        verified=False,
        verification_code="123456",
    )
    async_session.add(identity)
    await async_session.commit()
    await async_session.refresh(identity)
    return identity


@pytest.fixture
async def open_poll(async_session: AsyncSession) -> Poll:
    """An active poll."""
    poll = Poll(id=uuid.uuid4(), title="Longer lunch break?", active=True)
    async_session.add(poll)
    await async_session.commit()
    await async_session.refresh(poll)
    return poll


@pytest.fixture
async def closed_poll(async_session: AsyncSession) -> Poll:
    """An inactive poll."""
    poll = Poll(id=uuid.uuid4(), title="School uniform?", active=False)
    async_session.add(poll)
    await async_session.commit()
    await async_session.refresh(poll)
    return poll


@pytest.fixture
def identity_token(settings: Settings, verified_identity: Identity) -> str:
    """Generate a JWT access token for the verified identity."""
    return create_access_token(
        subject=str(verified_identity.id),
        email=verified_identity.email,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
