"""PostgreSQL visibility filter.

Reads only active members at or below the viewer's level. The level
predicate is applied in SQL so rows above the viewer never leave the
database.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cocentrica.application.ports.visibility import VisibilityProtocol
from cocentrica.domain.models.member import Member


class PostgresVisibility(VisibilityProtocol):
    """Level-filtered member reads over SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def visible_members(self, viewer_level: int, limit: int) -> list[Member]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, handle, email, name, level, is_active,
                           invited_by, created_at
                    FROM members
                    WHERE level <= :viewer_level AND is_active = TRUE
                    ORDER BY handle ASC
                    LIMIT :limit
                """),
                {"viewer_level": viewer_level, "limit": limit},
            )
            return [
                Member(
                    id=row["id"],
                    handle=row["handle"],
                    email=row["email"],
                    name=row["name"],
                    level=row["level"],
                    is_active=row["is_active"],
                    invited_by=row["invited_by"],
                    created_at=row["created_at"],
                )
                for row in result.mappings()
            ]

    async def visible_count(self, viewer_level: int) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT COUNT(*) FROM members
                    WHERE level <= :viewer_level AND is_active = TRUE
                """),
                {"viewer_level": viewer_level},
            )
            return result.scalar() or 0
