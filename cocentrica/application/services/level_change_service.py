"""Level change service.

Orchestrates PROMOTE, DEMOTE and VOTE. Each operation runs inside exactly one
store transaction, so the read-decide-write sequence (resolve target, compute
rules, create request, cast vote, apply) is atomic.

Governance Rules:
- The actor may only target members at or below their own level
- The rule engine decides permission and quorum from a context read inside
  the same transaction
- The creator votes FOR automatically when eligible, with comment
  "Creator vote"
- Voting locks the request row, requires it to be PENDING and checks
  eligibility against the target member's current level
- Whichever write brings the FOR tally to quorum applies the change, at most
  once
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from cocentrica.application.services.base import LoggingMixin
from cocentrica.application.services.level_change_executor import (
    ApplicationOutcome,
    LevelChangeExecutor,
)
from cocentrica.application.services.mode_controller import ModeController
from cocentrica.application.services.request_store import RequestStore
from cocentrica.application.services.vote_ledger import (
    CREATOR_VOTE_COMMENT,
    VoteCastResult,
    VoteLedger,
)
from cocentrica.domain.errors import (
    InfluenceDeniedError,
    LevelChangeNotPermittedError,
    MemberNotFoundError,
    RequestNotFoundError,
    RequestNotPendingError,
    VoteNotPermittedError,
)
from cocentrica.domain.governance.influence_guard import can_influence, can_vote
from cocentrica.domain.governance.rule_engine import RuleEngine
from cocentrica.domain.models.level_change import (
    LevelChangeRequest,
    LevelOperation,
    VoteDirection,
)
from cocentrica.domain.models.member import Member

if TYPE_CHECKING:
    from cocentrica.application.dtos.commands import LevelChangeArgs, VoteArgs
    from cocentrica.application.ports.governance_store import (
        GovernanceStoreProtocol,
        GovernanceTransactionProtocol,
    )
    from cocentrica.infrastructure.monitoring.governance_metrics import (
        GovernanceMetrics,
    )


@dataclass(frozen=True)
class ProposalResult:
    """Result of a PROMOTE or DEMOTE command.

    Attributes:
        request: The request as created (status PENDING at creation time).
        target: The target member as resolved before any change.
        creator_voted: True if the creator's automatic vote was cast.
        outcome: Result of the application attempt after the creator vote.
    """

    request: LevelChangeRequest
    target: Member
    creator_voted: bool
    outcome: ApplicationOutcome

    @property
    def applied(self) -> bool:
        return self.outcome.applied


@dataclass(frozen=True)
class VoteResult:
    """Result of a VOTE command.

    Attributes:
        request: The request voted on, as read under the row lock.
        cast: The ledger result (updated flag and FOR tally).
        outcome: Result of the application attempt after the vote.
    """

    request: LevelChangeRequest
    cast: VoteCastResult
    outcome: ApplicationOutcome

    @property
    def applied(self) -> bool:
        return self.outcome.applied


class LevelChangeService(LoggingMixin):
    """Transactional orchestration of level-change proposals and votes."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        mode_controller: ModeController,
        rule_engine: RuleEngine | None = None,
        request_store: RequestStore | None = None,
        vote_ledger: VoteLedger | None = None,
        executor: LevelChangeExecutor | None = None,
        metrics: GovernanceMetrics | None = None,
    ) -> None:
        """Initialize the level change service.

        Args:
            store: Transactional governance store.
            mode_controller: Reads the governance context, advances the mode.
            rule_engine: Permission and quorum calculator.
            request_store: Request creation and lookup.
            vote_ledger: Vote upsert and tally.
            executor: Applies requests that reach quorum.
            metrics: Optional governance counters.
        """
        self._store = store
        self._mode_controller = mode_controller
        self._rule_engine = rule_engine or RuleEngine()
        self._request_store = request_store or RequestStore()
        self._vote_ledger = vote_ledger or VoteLedger(metrics=metrics)
        self._executor = executor or LevelChangeExecutor(
            mode_controller, metrics=metrics
        )
        self._metrics = metrics
        self._init_logger(component="governance")

    async def propose(
        self,
        actor: Member,
        operation: LevelOperation,
        args: LevelChangeArgs,
    ) -> ProposalResult:
        """Create a promotion or demotion request and apply it if possible.

        Args:
            actor: Member issuing the command.
            operation: PROMOTE or DEMOTE.
            args: Validated target handle, destination level and reason.

        Returns:
            ProposalResult with the request and the application outcome.

        Raises:
            MemberNotFoundError: If the target handle is not an active member.
            InfluenceDeniedError: If the target is above the actor's level.
            LevelChangeNotPermittedError: If the rule engine refuses.
        """
        log = self._log_operation(
            operation.value,
            actor=actor.handle,
            target=args.handle,
            to_level=args.to_level,
        )

        async with self._store.transaction() as tx:
            actor = await self._current_actor(tx, actor)
            target = await tx.get_member_by_handle(args.handle)
            if target is None or not target.is_active:
                raise MemberNotFoundError(args.handle)

            if not can_influence(actor.level, target.level):
                log.info("level_change_influence_denied", target_level=target.level)
                raise InfluenceDeniedError(actor.level, target.level)

            context = await self._mode_controller.read_context(tx)
            validation = self._rule_engine.validate_level_change(
                operation,
                target.level,
                args.to_level,
                context,
            )
            if not validation.allowed:
                log.info(
                    "level_change_not_permitted",
                    mode=context.mode.value,
                    core_population=context.core_population,
                    reason=validation.reason,
                )
                raise LevelChangeNotPermittedError(validation.reason or "")

            rules = self._rule_engine.compute_rules(
                operation, target.level, args.to_level, context
            )
            request = await self._request_store.create(
                tx,
                creator=actor,
                target=target,
                to_level=args.to_level,
                reason=args.reason,
                required_votes=rules.required_votes,
            )
            if self._metrics is not None:
                self._metrics.record_request_created(operation)

            creator_voted = can_vote(actor.level, target.level)
            if creator_voted:
                await self._vote_ledger.cast(
                    tx,
                    request.id,
                    actor.id,
                    VoteDirection.FOR,
                    CREATOR_VOTE_COMMENT,
                )

            outcome = await self._executor.apply_if_threshold_crossed(
                tx, request, applied_by=actor.handle
            )

        log.info(
            "level_change_proposed",
            request_id=str(request.id),
            required_votes=request.required_votes,
            for_votes=outcome.for_votes,
            status=outcome.status.value,
        )
        return ProposalResult(
            request=request,
            target=target,
            creator_voted=creator_voted,
            outcome=outcome,
        )

    async def vote(self, voter: Member, args: VoteArgs) -> VoteResult:
        """Cast or change a vote and apply the request if quorum is reached.

        Args:
            voter: Member casting the vote.
            args: Validated request reference, direction and comment.

        Returns:
            VoteResult with the tally and the application outcome.

        Raises:
            RequestNotFoundError: If the reference is not a known request.
            RequestNotPendingError: If the request is already resolved.
            VoteNotPermittedError: If the voter is below the target's level.
        """
        log = self._log_operation(
            "vote",
            voter=voter.handle,
            request_ref=args.request,
            direction=args.vote.value,
        )
        request_id = _parse_request_id(args.request)

        async with self._store.transaction() as tx:
            request = await self._request_store.get(tx, request_id, for_update=True)
            if request is None:
                raise RequestNotFoundError(args.request)
            if not request.is_pending:
                raise RequestNotPendingError(request.id, request.status.value)

            voter = await self._current_actor(tx, voter)
            target = await tx.get_member(request.target_id)
            target_level = target.level if target is not None else request.from_level
            if not can_vote(voter.level, target_level):
                log.info("vote_not_permitted", target_level=target_level)
                raise VoteNotPermittedError(request.id, voter.level, target_level)

            cast = await self._vote_ledger.cast(
                tx, request.id, voter.id, args.vote, args.comment
            )
            outcome = await self._executor.apply_if_threshold_crossed(
                tx, request, applied_by=voter.handle
            )

        log.info(
            "vote_processed",
            updated=cast.updated,
            for_votes=cast.for_votes,
            required_votes=request.required_votes,
            status=outcome.status.value,
        )
        return VoteResult(request=request, cast=cast, outcome=outcome)

    @staticmethod
    async def _current_actor(
        tx: GovernanceTransactionProtocol, actor: Member
    ) -> Member:
        # Levels may have changed since the sender was resolved
        current = await tx.get_member(actor.id)
        if current is None or not current.is_active:
            raise MemberNotFoundError(actor.handle)
        return current


def _parse_request_id(reference: str) -> UUID:
    try:
        return UUID(reference)
    except ValueError as exc:
        raise RequestNotFoundError(reference) from exc
