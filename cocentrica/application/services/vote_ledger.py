"""Vote ledger.

Records one vote per (request, voter) and tallies FOR votes.

Governance Rules:
- The first vote by a voter on a request inserts a ledger row
- Any later vote by the same voter overwrites direction and comment on that
  row; vote changes are allowed, never accumulated
- The tally counts the latest direction of each voter only
- A request's creator casts an automatic FOR vote when eligible
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from structlog import get_logger

from cocentrica.domain.models.level_change import Vote, VoteDirection

if TYPE_CHECKING:
    from cocentrica.application.ports.governance_store import (
        GovernanceTransactionProtocol,
    )
    from cocentrica.infrastructure.monitoring.governance_metrics import (
        GovernanceMetrics,
    )

logger = get_logger(__name__)

CREATOR_VOTE_COMMENT = "Creator vote"


@dataclass(frozen=True)
class VoteCastResult:
    """Result of casting a vote.

    Attributes:
        vote: The ledger row after the cast.
        updated: True if an earlier vote by the same voter was overwritten.
        for_votes: FOR votes on the request after the cast.
    """

    vote: Vote
    updated: bool
    for_votes: int


class VoteLedger:
    """Upserts votes and returns the up-to-date FOR tally."""

    def __init__(self, metrics: GovernanceMetrics | None = None) -> None:
        self._metrics = metrics

    async def cast(
        self,
        tx: GovernanceTransactionProtocol,
        request_id: UUID,
        voter_id: UUID,
        direction: VoteDirection,
        comment: str | None = None,
    ) -> VoteCastResult:
        """Insert or overwrite a voter's vote on a request.

        Args:
            tx: The operation's transaction.
            request_id: Request being voted on.
            voter_id: Member casting the vote.
            direction: FOR or AGAINST.
            comment: Optional free text; replaces any earlier comment.

        Returns:
            VoteCastResult with the FOR tally after this cast.
        """
        log = logger.bind(request_id=str(request_id), voter_id=str(voter_id))
        now = datetime.now(timezone.utc)

        existing = await tx.get_vote(request_id, voter_id)
        if existing is None:
            vote = Vote(
                id=uuid4(),
                request_id=request_id,
                voter_id=voter_id,
                direction=direction,
                comment=comment,
                created_at=now,
                updated_at=now,
            )
            await tx.insert_vote(vote)
            updated = False
        else:
            vote = existing.recast(direction, comment, now)
            await tx.update_vote(vote)
            updated = True

        for_votes = await tx.count_for_votes(request_id)
        log.info(
            "vote_cast",
            direction=direction.value,
            updated=updated,
            for_votes=for_votes,
        )
        if self._metrics is not None:
            self._metrics.record_vote(direction, updated)
        return VoteCastResult(vote=vote, updated=updated, for_votes=for_votes)

    async def tally(self, tx: GovernanceTransactionProtocol, request_id: UUID) -> int:
        """Return the current FOR count of a request."""
        return await tx.count_for_votes(request_id)
