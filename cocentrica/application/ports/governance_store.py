"""Governance store port (unit of work).

This module defines the persistence contract of the governance engine.
The store is the single source of truth and the only shared mutable state.

Every multi-step operation that reads then writes governance state runs
inside one ``transaction()``: all writes commit together or none do.

Transaction Guarantees:
- Reads inside a transaction see the transaction's own writes
- ``get_mode(for_update=True)`` locks the mode record until commit
- ``get_request(..., for_update=True)`` locks the request row until commit
- ``approve_request_cas`` flips PENDING to APPROVED only if the row is still
  PENDING; otherwise it raises ConcurrentModificationError
- An exception escaping the ``async with`` block rolls everything back
- (request_id, voter_id) is unique in the vote ledger
"""

from __future__ import annotations

from abc import abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from cocentrica.domain.models.invite import Invite
from cocentrica.domain.models.level_change import (
    LevelChangeRequest,
    LevelHistoryEntry,
    Vote,
)
from cocentrica.domain.models.member import Member
from cocentrica.domain.models.system_mode import SystemMode, SystemModeRecord


class GovernanceTransactionProtocol(Protocol):
    """Operations available inside one governance transaction."""

    # Members

    @abstractmethod
    async def get_member(self, member_id: UUID) -> Member | None:
        """Get a member by id, active or not."""
        ...

    @abstractmethod
    async def get_member_by_handle(self, handle: str) -> Member | None:
        """Get a member by handle, active or not."""
        ...

    @abstractmethod
    async def get_member_by_email(self, email: str) -> Member | None:
        """Get a member by email, active or not."""
        ...

    @abstractmethod
    async def add_member(self, member: Member) -> None:
        """Insert a new member.

        Raises:
            ValueError: If the id, handle or email is already used.
        """
        ...

    @abstractmethod
    async def update_member_level(self, member_id: UUID, level: int) -> Member:
        """Set a member's level and return the updated member.

        Raises:
            KeyError: If the member does not exist.
            ValueError: If the level is outside [1, 5].
        """
        ...

    @abstractmethod
    async def count_core_members(self) -> int:
        """Count active members at level 5."""
        ...

    # System mode

    @abstractmethod
    async def get_mode(self, for_update: bool = False) -> SystemModeRecord:
        """Get the current mode record (BOOTSTRAP when never written).

        Args:
            for_update: Lock the mode record until the transaction ends.
                Every governance decision takes this lock, so decisions that
                depend on the mode or the Core population serialize.
        """
        ...

    @abstractmethod
    async def set_mode(self, mode: SystemMode, updated_by: str | None) -> None:
        """Write the mode record."""
        ...

    # Level-change requests

    @abstractmethod
    async def create_request(self, request: LevelChangeRequest) -> None:
        """Insert a new level-change request."""
        ...

    @abstractmethod
    async def get_request(
        self, request_id: UUID, for_update: bool = False
    ) -> LevelChangeRequest | None:
        """Get a request by id.

        Args:
            request_id: The request to read.
            for_update: Lock the request row until the transaction ends.
        """
        ...

    @abstractmethod
    async def approve_request_cas(
        self, request_id: UUID, resolved_at: datetime
    ) -> LevelChangeRequest:
        """Atomically move a request from PENDING to APPROVED.

        Returns:
            The approved request.

        Raises:
            ConcurrentModificationError: The request is no longer PENDING.
            KeyError: The request does not exist.
        """
        ...

    # Vote ledger

    @abstractmethod
    async def get_vote(self, request_id: UUID, voter_id: UUID) -> Vote | None:
        """Get the vote of one voter on one request, if any."""
        ...

    @abstractmethod
    async def insert_vote(self, vote: Vote) -> None:
        """Insert a first vote.

        Raises:
            ValueError: If (request_id, voter_id) already has a vote.
        """
        ...

    @abstractmethod
    async def update_vote(self, vote: Vote) -> None:
        """Overwrite direction, comment and updated_at of an existing vote."""
        ...

    @abstractmethod
    async def count_for_votes(self, request_id: UUID) -> int:
        """Count FOR votes on a request."""
        ...

    # Audit history

    @abstractmethod
    async def append_history(self, entry: LevelHistoryEntry) -> None:
        """Append an audit record. History rows are never updated."""
        ...

    @abstractmethod
    async def list_history(self, member_id: UUID) -> list[LevelHistoryEntry]:
        """List a member's history, oldest first."""
        ...

    # Invites

    @abstractmethod
    async def find_active_invite(self, email: str, now: datetime) -> Invite | None:
        """Find an unused invite for the email that expires after ``now``."""
        ...

    @abstractmethod
    async def create_invite(self, invite: Invite) -> None:
        """Insert a new invite."""
        ...

    @abstractmethod
    async def count_used_invites(self, inviter_id: UUID) -> int:
        """Count redeemed invites created by a member."""
        ...


class GovernanceStoreProtocol(Protocol):
    """Factory for governance transactions."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[GovernanceTransactionProtocol]:
        """Open a transaction.

        Usage:
            async with store.transaction() as tx:
                member = await tx.get_member_by_handle("alice")
                ...
        """
        ...
