"""Level-change executor.

Applies an approved level change exactly when a request's FOR tally reaches
its frozen quorum, and never more than once.

Governance Rules:
- Below quorum nothing is written and the request stays PENDING
- At quorum the change is validated again against the live state: the
  target's current level and the Core population read under the mode lock.
  A change that no longer validates is not applied and the request stays
  PENDING, so a later vote retries it
- A change that still validates swaps the request status PENDING ->
  APPROVED first; a lost swap means another writer already applied it
- On a won swap, in the same transaction: the member's level is updated, a
  history entry is appended and, if the new level is 5, the mode is
  re-checked
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from structlog import get_logger

from cocentrica.domain.errors import ConcurrentModificationError
from cocentrica.domain.governance.rule_engine import RuleEngine
from cocentrica.domain.models.level_change import LevelChangeRequest, LevelHistoryEntry
from cocentrica.domain.models.member import CORE_LEVEL

if TYPE_CHECKING:
    from cocentrica.application.ports.governance_store import (
        GovernanceTransactionProtocol,
    )
    from cocentrica.application.services.mode_controller import ModeController
    from cocentrica.infrastructure.monitoring.governance_metrics import (
        GovernanceMetrics,
    )

logger = get_logger(__name__)

TARGET_UNAVAILABLE = "Target member is no longer active"


class ApplicationStatus(Enum):
    """Result of one application attempt."""

    PENDING = "PENDING"
    APPLIED = "APPLIED"
    ALREADY_RESOLVED = "ALREADY_RESOLVED"


@dataclass(frozen=True)
class ApplicationOutcome:
    """Outcome of ``apply_if_threshold_crossed``.

    Attributes:
        status: PENDING, APPLIED or ALREADY_RESOLVED.
        for_votes: FOR tally seen by this attempt.
        required_votes: The request's frozen quorum.
        mode_activated: True if this application ended bootstrap.
        blocked_reason: Set when quorum was reached but the change no longer
            validates against the live state.
    """

    status: ApplicationStatus
    for_votes: int
    required_votes: int
    mode_activated: bool = False
    blocked_reason: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.status is ApplicationStatus.APPLIED


class LevelChangeExecutor:
    """Applies approved level changes inside the caller's transaction.

    Depends only on the store transaction, the mode controller and the pure
    rule engine.
    """

    def __init__(
        self,
        mode_controller: ModeController,
        metrics: GovernanceMetrics | None = None,
        rule_engine: RuleEngine | None = None,
    ) -> None:
        self._mode_controller = mode_controller
        self._metrics = metrics
        self._rule_engine = rule_engine or RuleEngine()

    async def apply_if_threshold_crossed(
        self,
        tx: GovernanceTransactionProtocol,
        request: LevelChangeRequest,
        applied_by: str,
    ) -> ApplicationOutcome:
        """Apply the request if its FOR tally has reached the quorum.

        Args:
            tx: The transaction that cast the triggering vote.
            request: The request to evaluate.
            applied_by: Handle of the member whose action triggered this.

        Returns:
            ApplicationOutcome describing what happened.
        """
        log = logger.bind(
            request_id=str(request.id),
            target_id=str(request.target_id),
            applied_by=applied_by,
        )
        for_votes = await tx.count_for_votes(request.id)
        if for_votes < request.required_votes:
            return ApplicationOutcome(
                status=ApplicationStatus.PENDING,
                for_votes=for_votes,
                required_votes=request.required_votes,
            )

        context = await self._mode_controller.read_context(tx)
        current = await tx.get_request(request.id)
        if current is None or not current.is_pending:
            log.info("level_change_already_resolved", for_votes=for_votes)
            return ApplicationOutcome(
                status=ApplicationStatus.ALREADY_RESOLVED,
                for_votes=for_votes,
                required_votes=request.required_votes,
            )

        target = await tx.get_member(request.target_id)
        if target is None or not target.is_active:
            blocked_reason: Optional[str] = TARGET_UNAVAILABLE
        else:
            blocked_reason = self._rule_engine.validate_level_change(
                request.operation,
                target.level,
                request.to_level,
                context,
            ).reason
        if blocked_reason is not None:
            log.info(
                "level_change_blocked",
                reason=blocked_reason,
                mode=context.mode.value,
                core_population=context.core_population,
            )
            return ApplicationOutcome(
                status=ApplicationStatus.PENDING,
                for_votes=for_votes,
                required_votes=request.required_votes,
                blocked_reason=blocked_reason,
            )

        now = datetime.now(timezone.utc)
        try:
            await tx.approve_request_cas(request.id, now)
        except ConcurrentModificationError:
            log.info("level_change_already_resolved", for_votes=for_votes)
            return ApplicationOutcome(
                status=ApplicationStatus.ALREADY_RESOLVED,
                for_votes=for_votes,
                required_votes=request.required_votes,
            )

        await tx.update_member_level(request.target_id, request.to_level)
        await tx.append_history(
            LevelHistoryEntry(
                id=uuid4(),
                member_id=request.target_id,
                from_level=target.level,
                to_level=request.to_level,
                request_id=request.id,
                changed_by=applied_by,
                reason=request.reason,
                created_at=now,
            )
        )

        mode_activated = False
        if request.to_level == CORE_LEVEL:
            mode_activated = await self._mode_controller.check_transition(
                tx, updated_by=applied_by
            )

        log.info(
            "level_change_applied",
            from_level=target.level,
            to_level=request.to_level,
            for_votes=for_votes,
            required_votes=request.required_votes,
            mode_activated=mode_activated,
        )
        if self._metrics is not None:
            self._metrics.record_level_change_applied(request.operation)
        return ApplicationOutcome(
            status=ApplicationStatus.APPLIED,
            for_votes=for_votes,
            required_votes=request.required_votes,
            mode_activated=mode_activated,
        )
