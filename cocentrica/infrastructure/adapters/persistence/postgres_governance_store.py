"""PostgreSQL governance store (SQLAlchemy async).

Implements GovernanceStoreProtocol over the schema in
``migrations/001_governance_schema.sql``.

Each ``transaction()`` is one AsyncSession inside ``session.begin()``: it
commits when the block exits normally and rolls back on any exception.

Concurrency:
- ``get_mode(for_update=True)`` locks the ``system_mode`` row of
  ``system_config``. Every proposal and every application takes it before
  reading the Core population, so decisions that move the Core serialize
  even at READ COMMITTED
- ``get_request(..., for_update=True)`` issues ``SELECT ... FOR UPDATE`` so
  concurrent votes on the same request serialize on the row lock
- ``approve_request_cas`` is ``UPDATE ... WHERE status = 'PENDING'
  RETURNING``; an empty result means another transaction won
- The unique (request_id, voter_id) constraint backs the one-vote rule
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

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
from cocentrica.domain.models.system_mode import (
    SYSTEM_MODE_KEY,
    SystemMode,
    SystemModeRecord,
)

logger = get_logger(__name__)

_MEMBER_COLUMNS = "id, handle, email, name, level, is_active, invited_by, created_at"
_REQUEST_COLUMNS = (
    "id, creator_id, target_id, from_level, to_level, reason, "
    "required_votes, status, created_at, resolved_at"
)
_VOTE_COLUMNS = "id, request_id, voter_id, vote, comment, created_at, updated_at"
_INVITE_COLUMNS = (
    "id, token, email, handle, name, inviter_id, expires_at, is_used, created_at"
)


def _member(row: Mapping[str, Any]) -> Member:
    return Member(
        id=row["id"],
        handle=row["handle"],
        email=row["email"],
        name=row["name"],
        level=row["level"],
        is_active=row["is_active"],
        invited_by=row["invited_by"],
        created_at=row["created_at"],
    )


def _request(row: Mapping[str, Any]) -> LevelChangeRequest:
    return LevelChangeRequest(
        id=row["id"],
        creator_id=row["creator_id"],
        target_id=row["target_id"],
        from_level=row["from_level"],
        to_level=row["to_level"],
        reason=row["reason"],
        required_votes=row["required_votes"],
        status=RequestStatus(row["status"]),
        created_at=row["created_at"],
        resolved_at=row["resolved_at"],
    )


def _vote(row: Mapping[str, Any]) -> Vote:
    return Vote(
        id=row["id"],
        request_id=row["request_id"],
        voter_id=row["voter_id"],
        direction=VoteDirection(row["vote"]),
        comment=row["comment"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _invite(row: Mapping[str, Any]) -> Invite:
    return Invite(
        id=row["id"],
        token=row["token"],
        email=row["email"],
        handle=row["handle"],
        name=row["name"],
        inviter_id=row["inviter_id"],
        expires_at=row["expires_at"],
        is_used=row["is_used"],
        created_at=row["created_at"],
    )


class PostgresGovernanceTransaction(GovernanceTransactionProtocol):
    """Governance operations bound to one open AsyncSession transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _one(self, sql: str, params: dict[str, Any]) -> Mapping[str, Any] | None:
        result = await self._session.execute(text(sql), params)
        return result.mappings().first()

    # Members

    async def get_member(self, member_id: UUID) -> Member | None:
        row = await self._one(
            f"SELECT {_MEMBER_COLUMNS} FROM members WHERE id = :id",
            {"id": member_id},
        )
        return _member(row) if row else None

    async def get_member_by_handle(self, handle: str) -> Member | None:
        row = await self._one(
            f"SELECT {_MEMBER_COLUMNS} FROM members WHERE handle = :handle",
            {"handle": handle},
        )
        return _member(row) if row else None

    async def get_member_by_email(self, email: str) -> Member | None:
        row = await self._one(
            f"SELECT {_MEMBER_COLUMNS} FROM members WHERE email = :email",
            {"email": email},
        )
        return _member(row) if row else None

    async def add_member(self, member: Member) -> None:
        try:
            async with self._session.begin_nested():
                await self._session.execute(
                    text(f"""
                        INSERT INTO members ({_MEMBER_COLUMNS})
                        VALUES (:id, :handle, :email, :name, :level,
                                :is_active, :invited_by, :created_at)
                    """),
                    {
                        "id": member.id,
                        "handle": member.handle,
                        "email": member.email,
                        "name": member.name,
                        "level": member.level,
                        "is_active": member.is_active,
                        "invited_by": member.invited_by,
                        "created_at": member.created_at,
                    },
                )
        except IntegrityError as exc:
            raise ValueError(f"Member already exists: {member.handle}") from exc

    async def update_member_level(self, member_id: UUID, level: int) -> Member:
        if not is_valid_level(level):
            raise ValueError(f"Invalid level: {level}")
        row = await self._one(
            f"""
                UPDATE members SET level = :level
                WHERE id = :id
                RETURNING {_MEMBER_COLUMNS}
            """,
            {"id": member_id, "level": level},
        )
        if row is None:
            raise KeyError(f"Member not found: {member_id}")
        return _member(row)

    async def count_core_members(self) -> int:
        result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM members
                WHERE level = :core_level AND is_active = TRUE
            """),
            {"core_level": CORE_LEVEL},
        )
        return result.scalar() or 0

    # System mode

    async def get_mode(self, for_update: bool = False) -> SystemModeRecord:
        lock = ""
        if for_update:
            # The row must exist to be locked; an unwritten mode is BOOTSTRAP
            await self._session.execute(
                text("""
                    INSERT INTO system_config (key, value, updated_at)
                    VALUES (:key, :value, :updated_at)
                    ON CONFLICT (key) DO NOTHING
                """),
                {
                    "key": SYSTEM_MODE_KEY,
                    "value": SystemMode.BOOTSTRAP.value,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            lock = " FOR UPDATE"
        row = await self._one(
            "SELECT value, updated_by, updated_at FROM system_config "
            f"WHERE key = :key{lock}",
            {"key": SYSTEM_MODE_KEY},
        )
        if row is None:
            return SystemModeRecord(mode=SystemMode.BOOTSTRAP)
        return SystemModeRecord(
            mode=SystemMode(row["value"]),
            updated_by=row["updated_by"],
            updated_at=row["updated_at"],
        )

    async def set_mode(self, mode: SystemMode, updated_by: str | None) -> None:
        await self._session.execute(
            text("""
                INSERT INTO system_config (key, value, updated_by, updated_at)
                VALUES (:key, :value, :updated_by, :updated_at)
                ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value,
                    updated_by = EXCLUDED.updated_by,
                    updated_at = EXCLUDED.updated_at
            """),
            {
                "key": SYSTEM_MODE_KEY,
                "value": mode.value,
                "updated_by": updated_by,
                "updated_at": datetime.now(timezone.utc),
            },
        )

    # Level-change requests

    async def create_request(self, request: LevelChangeRequest) -> None:
        await self._session.execute(
            text(f"""
                INSERT INTO level_change_requests ({_REQUEST_COLUMNS})
                VALUES (:id, :creator_id, :target_id, :from_level, :to_level,
                        :reason, :required_votes, :status, :created_at,
                        :resolved_at)
            """),
            {
                "id": request.id,
                "creator_id": request.creator_id,
                "target_id": request.target_id,
                "from_level": request.from_level,
                "to_level": request.to_level,
                "reason": request.reason,
                "required_votes": request.required_votes,
                "status": request.status.value,
                "created_at": request.created_at,
                "resolved_at": request.resolved_at,
            },
        )

    async def get_request(
        self, request_id: UUID, for_update: bool = False
    ) -> LevelChangeRequest | None:
        lock = " FOR UPDATE" if for_update else ""
        row = await self._one(
            f"SELECT {_REQUEST_COLUMNS} FROM level_change_requests "
            f"WHERE id = :id{lock}",
            {"id": request_id},
        )
        return _request(row) if row else None

    async def approve_request_cas(
        self, request_id: UUID, resolved_at: datetime
    ) -> LevelChangeRequest:
        row = await self._one(
            f"""
                UPDATE level_change_requests
                SET status = :approved, resolved_at = :resolved_at
                WHERE id = :id AND status = :pending
                RETURNING {_REQUEST_COLUMNS}
            """,
            {
                "id": request_id,
                "approved": RequestStatus.APPROVED.value,
                "pending": RequestStatus.PENDING.value,
                "resolved_at": resolved_at,
            },
        )
        if row is not None:
            return _request(row)

        exists = await self._one(
            "SELECT status FROM level_change_requests WHERE id = :id",
            {"id": request_id},
        )
        if exists is None:
            raise KeyError(f"Request not found: {request_id}")
        logger.debug(
            "request_cas_lost",
            request_id=str(request_id),
            current_status=exists["status"],
        )
        raise ConcurrentModificationError(
            request_id=request_id,
            expected_status=RequestStatus.PENDING,
            operation="request_approval",
        )

    # Vote ledger

    async def get_vote(self, request_id: UUID, voter_id: UUID) -> Vote | None:
        row = await self._one(
            f"""
                SELECT {_VOTE_COLUMNS} FROM votes
                WHERE request_id = :request_id AND voter_id = :voter_id
            """,
            {"request_id": request_id, "voter_id": voter_id},
        )
        return _vote(row) if row else None

    async def insert_vote(self, vote: Vote) -> None:
        try:
            async with self._session.begin_nested():
                await self._session.execute(
                    text(f"""
                        INSERT INTO votes ({_VOTE_COLUMNS})
                        VALUES (:id, :request_id, :voter_id, :vote, :comment,
                                :created_at, :updated_at)
                    """),
                    {
                        "id": vote.id,
                        "request_id": vote.request_id,
                        "voter_id": vote.voter_id,
                        "vote": vote.direction.value,
                        "comment": vote.comment,
                        "created_at": vote.created_at,
                        "updated_at": vote.updated_at,
                    },
                )
        except IntegrityError as exc:
            raise ValueError(
                f"Vote already exists for request {vote.request_id} "
                f"and voter {vote.voter_id}"
            ) from exc

    async def update_vote(self, vote: Vote) -> None:
        result = await self._session.execute(
            text("""
                UPDATE votes
                SET vote = :vote, comment = :comment, updated_at = :updated_at
                WHERE request_id = :request_id AND voter_id = :voter_id
            """),
            {
                "vote": vote.direction.value,
                "comment": vote.comment,
                "updated_at": vote.updated_at,
                "request_id": vote.request_id,
                "voter_id": vote.voter_id,
            },
        )
        if result.rowcount == 0:
            raise KeyError(f"Vote not found: {(vote.request_id, vote.voter_id)}")

    async def count_for_votes(self, request_id: UUID) -> int:
        result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM votes
                WHERE request_id = :request_id AND vote = :for_vote
            """),
            {"request_id": request_id, "for_vote": VoteDirection.FOR.value},
        )
        return result.scalar() or 0

    # Audit history

    async def append_history(self, entry: LevelHistoryEntry) -> None:
        await self._session.execute(
            text("""
                INSERT INTO level_history
                    (id, member_id, from_level, to_level, reason,
                     request_id, changed_by, created_at)
                VALUES (:id, :member_id, :from_level, :to_level, :reason,
                        :request_id, :changed_by, :created_at)
            """),
            {
                "id": entry.id,
                "member_id": entry.member_id,
                "from_level": entry.from_level,
                "to_level": entry.to_level,
                "reason": entry.reason,
                "request_id": entry.request_id,
                "changed_by": entry.changed_by,
                "created_at": entry.created_at,
            },
        )

    async def list_history(self, member_id: UUID) -> list[LevelHistoryEntry]:
        result = await self._session.execute(
            text("""
                SELECT id, member_id, from_level, to_level, reason,
                       request_id, changed_by, created_at
                FROM level_history
                WHERE member_id = :member_id
                ORDER BY created_at ASC
            """),
            {"member_id": member_id},
        )
        return [
            LevelHistoryEntry(
                id=row["id"],
                member_id=row["member_id"],
                from_level=row["from_level"],
                to_level=row["to_level"],
                reason=row["reason"],
                request_id=row["request_id"],
                changed_by=row["changed_by"],
                created_at=row["created_at"],
            )
            for row in result.mappings()
        ]

    # Invites

    async def find_active_invite(self, email: str, now: datetime) -> Invite | None:
        row = await self._one(
            f"""
                SELECT {_INVITE_COLUMNS} FROM invites
                WHERE email = :email AND is_used = FALSE AND expires_at > :now
                LIMIT 1
            """,
            {"email": email, "now": now},
        )
        return _invite(row) if row else None

    async def create_invite(self, invite: Invite) -> None:
        await self._session.execute(
            text(f"""
                INSERT INTO invites ({_INVITE_COLUMNS})
                VALUES (:id, :token, :email, :handle, :name, :inviter_id,
                        :expires_at, :is_used, :created_at)
            """),
            {
                "id": invite.id,
                "token": invite.token,
                "email": invite.email,
                "handle": invite.handle,
                "name": invite.name,
                "inviter_id": invite.inviter_id,
                "expires_at": invite.expires_at,
                "is_used": invite.is_used,
                "created_at": invite.created_at,
            },
        )

    async def count_used_invites(self, inviter_id: UUID) -> int:
        result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM invites
                WHERE inviter_id = :inviter_id AND is_used = TRUE
            """),
            {"inviter_id": inviter_id},
        )
        return result.scalar() or 0


class PostgresGovernanceStore(GovernanceStoreProtocol):
    """Production governance store over a SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[GovernanceTransactionProtocol]:
        async with self._session_factory() as session:
            async with session.begin():
                yield PostgresGovernanceTransaction(session)
