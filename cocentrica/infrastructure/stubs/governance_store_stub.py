"""In-memory governance store stub.

This module provides an in-memory implementation of GovernanceStoreProtocol
for development and testing purposes.

Transactions are serialized on one asyncio.Lock, so they behave as if run at
SERIALIZABLE isolation. An exception escaping a transaction restores the
snapshot taken when it began. The compare-and-swap on request status is
simulated the same way PostgreSQL's ``UPDATE ... WHERE status = 'PENDING'
RETURNING`` behaves: a non-PENDING row raises ConcurrentModificationError.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from uuid import UUID

from cocentrica.application.ports.governance_store import (
    GovernanceStoreProtocol,
    GovernanceTransactionProtocol,
)
from cocentrica.domain.errors import ConcurrentModificationError
from cocentrica.domain.models.invite import Invite
from cocentrica.domain.models.level_change import (
    LevelChangeRequest,
    LevelHistoryEntry,
    RequestStatus,
    Vote,
    VoteDirection,
)
from cocentrica.domain.models.member import CORE_LEVEL, Member, is_valid_level
from cocentrica.domain.models.system_mode import SystemMode, SystemModeRecord


@dataclass
class _State:
    members: dict[UUID, Member] = field(default_factory=dict)
    invites: dict[UUID, Invite] = field(default_factory=dict)
    requests: dict[UUID, LevelChangeRequest] = field(default_factory=dict)
    votes: dict[tuple[UUID, UUID], Vote] = field(default_factory=dict)
    history: list[LevelHistoryEntry] = field(default_factory=list)
    mode: SystemModeRecord | None = None

    def snapshot(self) -> _State:
        # Records are frozen, so copying the containers is enough
        return _State(
            members=dict(self.members),
            invites=dict(self.invites),
            requests=dict(self.requests),
            votes=dict(self.votes),
            history=list(self.history),
            mode=self.mode,
        )


class GovernanceTransactionStub(GovernanceTransactionProtocol):
    """Operations on the stub's state inside one serialized transaction."""

    def __init__(self, state: _State) -> None:
        self._state = state

    # Members

    async def get_member(self, member_id: UUID) -> Member | None:
        return self._state.members.get(member_id)

    async def get_member_by_handle(self, handle: str) -> Member | None:
        for member in self._state.members.values():
            if member.handle == handle:
                return member
        return None

    async def get_member_by_email(self, email: str) -> Member | None:
        for member in self._state.members.values():
            if member.email == email:
                return member
        return None

    async def add_member(self, member: Member) -> None:
        if member.id in self._state.members:
            raise ValueError(f"Member already exists: {member.id}")
        if await self.get_member_by_handle(member.handle) is not None:
            raise ValueError(f"Handle already exists: {member.handle}")
        if await self.get_member_by_email(member.email) is not None:
            raise ValueError(f"Email already exists: {member.email}")
        self._state.members[member.id] = member

    async def update_member_level(self, member_id: UUID, level: int) -> Member:
        member = self._state.members.get(member_id)
        if member is None:
            raise KeyError(f"Member not found: {member_id}")
        if not is_valid_level(level):
            raise ValueError(f"Invalid level: {level}")
        updated = member.with_level(level)
        self._state.members[member_id] = updated
        return updated

    async def count_core_members(self) -> int:
        return sum(
            1
            for m in self._state.members.values()
            if m.is_active and m.level == CORE_LEVEL
        )

    # System mode

    async def get_mode(self, for_update: bool = False) -> SystemModeRecord:
        if self._state.mode is None:
            return SystemModeRecord(mode=SystemMode.BOOTSTRAP)
        return self._state.mode

    async def set_mode(self, mode: SystemMode, updated_by: str | None) -> None:
        self._state.mode = SystemModeRecord(
            mode=mode,
            updated_by=updated_by,
            updated_at=datetime.now(timezone.utc),
        )

    # Level-change requests

    async def create_request(self, request: LevelChangeRequest) -> None:
        if request.id in self._state.requests:
            raise ValueError(f"Request already exists: {request.id}")
        self._state.requests[request.id] = request

    async def get_request(
        self, request_id: UUID, for_update: bool = False
    ) -> LevelChangeRequest | None:
        # The transaction already holds the store lock
        return self._state.requests.get(request_id)

    async def approve_request_cas(
        self, request_id: UUID, resolved_at: datetime
    ) -> LevelChangeRequest:
        request = self._state.requests.get(request_id)
        if request is None:
            raise KeyError(f"Request not found: {request_id}")
        if request.status is not RequestStatus.PENDING:
            raise ConcurrentModificationError(
                request_id=request_id,
                expected_status=RequestStatus.PENDING,
                operation="request_approval",
            )
        approved = request.approved(resolved_at)
        self._state.requests[request_id] = approved
        return approved

    # Vote ledger

    async def get_vote(self, request_id: UUID, voter_id: UUID) -> Vote | None:
        return self._state.votes.get((request_id, voter_id))

    async def insert_vote(self, vote: Vote) -> None:
        key = (vote.request_id, vote.voter_id)
        if key in self._state.votes:
            raise ValueError(
                f"Vote already exists for request {vote.request_id} "
                f"and voter {vote.voter_id}"
            )
        self._state.votes[key] = vote

    async def update_vote(self, vote: Vote) -> None:
        key = (vote.request_id, vote.voter_id)
        existing = self._state.votes.get(key)
        if existing is None:
            raise KeyError(f"Vote not found: {key}")
        self._state.votes[key] = replace(
            existing,
            direction=vote.direction,
            comment=vote.comment,
            updated_at=vote.updated_at,
        )

    async def count_for_votes(self, request_id: UUID) -> int:
        return sum(
            1
            for (rid, _), vote in self._state.votes.items()
            if rid == request_id and vote.direction is VoteDirection.FOR
        )

    # Audit history

    async def append_history(self, entry: LevelHistoryEntry) -> None:
        self._state.history.append(entry)

    async def list_history(self, member_id: UUID) -> list[LevelHistoryEntry]:
        return [e for e in self._state.history if e.member_id == member_id]

    # Invites

    async def find_active_invite(self, email: str, now: datetime) -> Invite | None:
        for invite in self._state.invites.values():
            if invite.email == email and invite.is_active_at(now):
                return invite
        return None

    async def create_invite(self, invite: Invite) -> None:
        if invite.id in self._state.invites:
            raise ValueError(f"Invite already exists: {invite.id}")
        self._state.invites[invite.id] = invite

    async def count_used_invites(self, inviter_id: UUID) -> int:
        return sum(
            1
            for i in self._state.invites.values()
            if i.inviter_id == inviter_id and i.is_used
        )


class GovernanceStoreStub(GovernanceStoreProtocol):
    """In-memory stub implementation of GovernanceStoreProtocol.

    NOT suitable for production use.

    Attributes:
        transactions_committed: Count of transactions that committed.
        transactions_rolled_back: Count of transactions that rolled back.
    """

    def __init__(self) -> None:
        self._state = _State()
        self._lock = asyncio.Lock()
        self.transactions_committed = 0
        self.transactions_rolled_back = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[GovernanceTransactionProtocol]:
        async with self._lock:
            before = self._state.snapshot()
            try:
                yield GovernanceTransactionStub(self._state)
            except BaseException:
                self._state = before
                self.transactions_rolled_back += 1
                raise
            self.transactions_committed += 1

    # Test helpers

    @property
    def members(self) -> list[Member]:
        return list(self._state.members.values())

    @property
    def requests(self) -> list[LevelChangeRequest]:
        return list(self._state.requests.values())

    @property
    def votes(self) -> list[Vote]:
        return list(self._state.votes.values())

    @property
    def history(self) -> list[LevelHistoryEntry]:
        return list(self._state.history)

    @property
    def invites(self) -> list[Invite]:
        return list(self._state.invites.values())

    @property
    def mode(self) -> SystemMode:
        return self._state.mode.mode if self._state.mode else SystemMode.BOOTSTRAP

    def member_by_handle(self, handle: str) -> Member | None:
        for member in self._state.members.values():
            if member.handle == handle:
                return member
        return None

    def mark_invite_used(self, invite_id: UUID) -> None:
        """Simulate redemption of an invite by the external accept flow."""
        invite = self._state.invites[invite_id]
        self._state.invites[invite_id] = replace(invite, is_used=True)

    def clear(self) -> None:
        """Clear all stored state (for testing)."""
        self._state = _State()
        self.transactions_committed = 0
        self.transactions_rolled_back = 0
