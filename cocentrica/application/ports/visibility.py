"""Visibility port.

Filters which members a viewer may see: active members whose level is at or
below the viewer's level. Higher levels are never revealed, not even as
counts.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from cocentrica.domain.models.member import Member


class VisibilityProtocol(Protocol):
    """Protocol for level-filtered member reads."""

    @abstractmethod
    async def visible_members(self, viewer_level: int, limit: int) -> list[Member]:
        """List members visible at ``viewer_level``, ordered by handle.

        Args:
            viewer_level: Level of the member asking.
            limit: Maximum number of members to return.
        """
        ...

    @abstractmethod
    async def visible_count(self, viewer_level: int) -> int:
        """Count members visible at ``viewer_level``."""
        ...
