"""Member domain model.

This module defines the member of the trust hierarchy and the level bounds
every member must respect.

Governance Rules:
- Level is an integer in [1, 5] at all times
- Level 5 is the Core
- Level and the active flag change only through the level-change executor;
  identity fields (id, handle, email, name, invited_by) are set once
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

MIN_LEVEL = 1
MAX_LEVEL = 5
CORE_LEVEL = MAX_LEVEL

# New members redeem invites at the lowest level
ENTRY_LEVEL = MIN_LEVEL


def is_valid_level(level: int) -> bool:
    """Check whether an integer is a valid trust level.

    Args:
        level: Candidate level.

    Returns:
        True if MIN_LEVEL <= level <= MAX_LEVEL.
    """
    return isinstance(level, int) and MIN_LEVEL <= level <= MAX_LEVEL


@dataclass(frozen=True, eq=True)
class Member:
    """A member of the trust hierarchy.

    Attributes:
        id: Unique identifier.
        handle: Unique handle (without the leading "@").
        email: Unique email address, shown only to Core viewers.
        name: Display name.
        level: Trust level in [1, 5].
        is_active: Inactive members are invisible and cannot act.
        invited_by: Handle of the member who invited this one, if any.
        created_at: When the member was created (UTC).
    """

    id: UUID
    handle: str
    email: str
    name: str
    level: int
    is_active: bool = field(default=True)
    invited_by: Optional[str] = field(default=None)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate member fields after initialization.

        Raises:
            ValueError: If the level is outside [1, 5] or the handle is empty.
        """
        if not is_valid_level(self.level):
            raise ValueError(
                f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {self.level}"
            )
        if not self.handle:
            raise ValueError("handle must not be empty")

    @property
    def is_core(self) -> bool:
        """True if this member is an active Core member."""
        return self.is_active and self.level == CORE_LEVEL

    def with_level(self, level: int) -> Member:
        """Return a copy of this member at a new level.

        Args:
            level: The new trust level.

        Returns:
            A new Member; validation runs again on the copy.
        """
        return replace(self, level=level)
