"""Request store: creation and lookup of level-change requests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from structlog import get_logger

from cocentrica.domain.errors import InvalidLevelError
from cocentrica.domain.models.level_change import LevelChangeRequest, RequestStatus
from cocentrica.domain.models.member import Member, is_valid_level

if TYPE_CHECKING:
    from cocentrica.application.ports.governance_store import (
        GovernanceTransactionProtocol,
    )

logger = get_logger(__name__)


class RequestStore:
    """Creates PENDING requests and reads them back.

    Target resolution and authorization happen in the caller before
    ``create`` is reached. The store only enforces the level range.
    """

    async def create(
        self,
        tx: GovernanceTransactionProtocol,
        creator: Member,
        target: Member,
        to_level: int,
        reason: str | None,
        required_votes: int,
    ) -> LevelChangeRequest:
        """Create a PENDING request with a frozen quorum.

        Args:
            tx: The operation's transaction.
            creator: Member proposing the change.
            target: Member whose level would change.
            to_level: Destination level.
            reason: Optional justification.
            required_votes: Quorum computed by the rule engine.

        Returns:
            The stored request.

        Raises:
            InvalidLevelError: If to_level is outside [1, 5].
        """
        if not is_valid_level(to_level):
            raise InvalidLevelError(to_level)

        request = LevelChangeRequest(
            id=uuid4(),
            creator_id=creator.id,
            target_id=target.id,
            from_level=target.level,
            to_level=to_level,
            required_votes=required_votes,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        await tx.create_request(request)
        logger.info(
            "level_change_request_created",
            request_id=str(request.id),
            creator=creator.handle,
            target=target.handle,
            from_level=request.from_level,
            to_level=request.to_level,
            required_votes=required_votes,
        )
        return request

    async def get(
        self,
        tx: GovernanceTransactionProtocol,
        request_id: UUID,
        for_update: bool = False,
    ) -> LevelChangeRequest | None:
        """Read a request, optionally locking its row for this transaction."""
        return await tx.get_request(request_id, for_update=for_update)
