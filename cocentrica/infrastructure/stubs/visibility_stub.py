"""Visibility stub backed by the in-memory governance store."""

from __future__ import annotations

from cocentrica.application.ports.visibility import VisibilityProtocol
from cocentrica.domain.models.member import Member
from cocentrica.infrastructure.stubs.governance_store_stub import GovernanceStoreStub


class VisibilityStub(VisibilityProtocol):
    """Reads visible members from a GovernanceStoreStub."""

    def __init__(self, store: GovernanceStoreStub) -> None:
        self._store = store

    def _visible(self, viewer_level: int) -> list[Member]:
        return sorted(
            (m for m in self._store.members if m.is_active and m.level <= viewer_level),
            key=lambda m: m.handle,
        )

    async def visible_members(self, viewer_level: int, limit: int) -> list[Member]:
        return self._visible(viewer_level)[:limit]

    async def visible_count(self, viewer_level: int) -> int:
        return len(self._visible(viewer_level))
