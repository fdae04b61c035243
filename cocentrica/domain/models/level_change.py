"""Level-change domain models.

This module defines the records of the governance engine:
- LevelChangeRequest: a proposal to move one member to another level
- Vote: one member's position on one request
- LevelHistoryEntry: the append-only audit record of an applied change

Governance Rules:
- required_votes is frozen when the request is created
- Exactly one vote per (request, voter); re-votes overwrite in place
- Requests and votes are never deleted; history entries are write-once
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID

from cocentrica.domain.models.member import is_valid_level


class LevelOperation(Enum):
    """Direction of a level change."""

    PROMOTE = "promote"
    DEMOTE = "demote"

    @property
    def noun(self) -> str:
        """Human-readable noun used in command replies."""
        return "Promotion" if self is LevelOperation.PROMOTE else "Demotion"


class RequestStatus(Enum):
    """Status of a level-change request.

    State Machine:
        PENDING -> APPROVED (quorum reached, change applied)

    REJECTED exists for completeness of the stored vocabulary. No operation
    sets it: there is no rejection or withdrawal path.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    def is_terminal(self) -> bool:
        """Check if this status ends the request's lifecycle."""
        return self is not RequestStatus.PENDING


class VoteDirection(Enum):
    """A voter's position on a request."""

    FOR = "FOR"
    AGAINST = "AGAINST"

    @classmethod
    def parse(cls, raw: str) -> VoteDirection:
        """Parse a case-insensitive vote direction.

        Args:
            raw: Text such as "for", "FOR" or "Against".

        Returns:
            The matching VoteDirection.

        Raises:
            ValueError: If the text is neither FOR nor AGAINST.
        """
        return cls(raw.strip().upper())


@dataclass(frozen=True, eq=True)
class LevelChangeRequest:
    """A proposal to move a member from one level to another.

    Attributes:
        id: Unique identifier, shown to members as "#<id>".
        creator_id: Member who proposed the change.
        target_id: Member whose level would change.
        from_level: Target's level when the request was created.
        to_level: Destination level.
        required_votes: FOR votes needed to apply; frozen at creation.
        reason: Optional justification text.
        status: Current lifecycle status.
        created_at: Creation time (UTC).
        resolved_at: When the request left PENDING, if it has.
    """

    id: UUID
    creator_id: UUID
    target_id: UUID
    from_level: int
    to_level: int
    required_votes: int
    reason: Optional[str] = field(default=None)
    status: RequestStatus = field(default=RequestStatus.PENDING)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resolved_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        """Validate request fields after initialization.

        Raises:
            ValueError: If a level is out of range or required_votes < 1.
        """
        if not is_valid_level(self.from_level):
            raise ValueError(f"from_level out of range: {self.from_level}")
        if not is_valid_level(self.to_level):
            raise ValueError(f"to_level out of range: {self.to_level}")
        if self.required_votes < 1:
            raise ValueError(
                f"required_votes must be at least 1, got {self.required_votes}"
            )

    @property
    def operation(self) -> LevelOperation:
        """Promotion if the destination is above the source level."""
        if self.to_level > self.from_level:
            return LevelOperation.PROMOTE
        return LevelOperation.DEMOTE

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    def approved(self, resolved_at: datetime) -> LevelChangeRequest:
        """Return a copy of this request marked APPROVED."""
        return replace(self, status=RequestStatus.APPROVED, resolved_at=resolved_at)


@dataclass(frozen=True, eq=True)
class Vote:
    """One voter's position on one request.

    Attributes:
        id: Unique identifier of the ledger row.
        request_id: The request voted on.
        voter_id: The member who voted.
        direction: FOR or AGAINST.
        comment: Optional free text.
        created_at: First cast (UTC).
        updated_at: Last re-vote (UTC).
    """

    id: UUID
    request_id: UUID
    voter_id: UUID
    direction: VoteDirection
    comment: Optional[str] = field(default=None)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def recast(
        self, direction: VoteDirection, comment: Optional[str], at: datetime
    ) -> Vote:
        """Return this vote with a new direction and comment."""
        return replace(self, direction=direction, comment=comment, updated_at=at)


@dataclass(frozen=True, eq=True)
class LevelHistoryEntry:
    """Append-only audit record of one applied level transition.

    Attributes:
        id: Unique identifier.
        member_id: Member whose level changed.
        from_level: Level before the change.
        to_level: Level after the change.
        reason: Justification copied from the request.
        request_id: Request that was applied.
        changed_by: Handle of the member whose action triggered application.
        created_at: When the change was applied (UTC).
    """

    id: UUID
    member_id: UUID
    from_level: int
    to_level: int
    request_id: UUID
    changed_by: str
    reason: Optional[str] = field(default=None)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
