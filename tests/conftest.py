"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory token store and recording notification sender
- A VerificationService wired to both
- PostgreSQL connection pool and token store (integration, adversarial)
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.memory import InMemoryTokenStore
from src.adapters.repository.postgres import PostgresTokenStore, run_migrations
from src.config.settings import get_settings
from src.domain.verification import VerificationService

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
WINDOW = timedelta(minutes=5)
BASE_URL = "https://verify.example.com"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def sender() -> AsyncMock:
    """Notification sender double recording send(email, url) calls."""
    mock = AsyncMock()
    mock.send.return_value = None
    return mock


@pytest.fixture
def service(store: InMemoryTokenStore, sender: AsyncMock, clock: FixedClock) -> VerificationService:
    return VerificationService(
        store=store,
        sender=sender,
        window=WINDOW,
        base_url=BASE_URL,
        clock=clock,
    )


@pytest.fixture
def window() -> timedelta:
    """Validity window the service fixture is configured with."""
    return WINDOW


@pytest_asyncio.fixture
async def pool() -> AsyncGenerator[AsyncConnectionPool, None]:
    """
    Connection pool for integration and adversarial tests.

    Requires PostgreSQL at DATABASE_URL. Migrations are applied and the
    table is emptied before each test.
    """
    settings = get_settings()
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    await pool.open()
    await run_migrations(pool)
    async with pool.connection() as conn:
        await conn.execute("DELETE FROM email_verifications")
        await conn.commit()
    yield pool
    await pool.close()


@pytest_asyncio.fixture
async def token_store(pool: AsyncConnectionPool) -> PostgresTokenStore:
    """Create token store instance for each test."""
    return PostgresTokenStore(pool)
