"""
Integration test configuration with testcontainers.

This module provides a session-scoped PostgreSQL container and per-test
governance stores over it:
- The container is started once per test session (scope="session")
- The schema is applied and every table truncated before each test
- Tests needing PostgreSQL are skipped when Docker is not available

Usage:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_example(pg_store: PostgresGovernanceStore) -> None:
        async with pg_store.transaction() as tx:
            ...
"""

from collections.abc import AsyncGenerator, Generator

import pytest
from docker.errors import DockerException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from cocentrica.bootstrap.database import apply_schema, normalize_database_url
from cocentrica.infrastructure.adapters.persistence import (
    PostgresGovernanceStore,
    PostgresVisibility,
)

_TABLES = (
    "level_history",
    "votes",
    "level_change_requests",
    "invites",
    "members",
    "system_config",
)


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Session-scoped PostgreSQL 16 container."""
    try:
        container = PostgresContainer("postgres:16-alpine")
        container.start()
    except DockerException as exc:
        pytest.skip(f"Docker not available: {exc}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def postgres_async_url(postgres_container: PostgresContainer) -> str:
    """Async (asyncpg) URL of the session container."""
    return normalize_database_url(postgres_container.get_connection_url())


@pytest.fixture
async def pg_engine(postgres_async_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over a freshly reset governance schema."""
    engine = create_async_engine(postgres_async_url, echo=False)
    await apply_schema(engine)
    async with engine.begin() as conn:
        await conn.execute(text(f"TRUNCATE {', '.join(_TABLES)} CASCADE"))
    yield engine
    await engine.dispose()


@pytest.fixture
def pg_session_factory(pg_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=pg_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest.fixture
def pg_store(
    pg_session_factory: async_sessionmaker[AsyncSession],
) -> PostgresGovernanceStore:
    """PostgreSQL governance store over an empty schema."""
    return PostgresGovernanceStore(pg_session_factory)


@pytest.fixture
def pg_visibility(
    pg_session_factory: async_sessionmaker[AsyncSession],
) -> PostgresVisibility:
    return PostgresVisibility(pg_session_factory)
