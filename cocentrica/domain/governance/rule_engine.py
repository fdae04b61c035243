"""Governance rule engine.

Decides whether a promotion or demotion is permitted and how many FOR votes
it needs, given the current mode and Core population.

Governance Rules:
- A Core operation is a change whose destination is level 5. Demotions out
  of the Core use the default quorum; their parity and last-member checks
  run in the validation pass
- BOOTSTRAP: levels 1-4 are frozen; the Core grows one member at a time,
  each addition approved by every existing Core member; no Core demotions
- ACTIVE: levels 1-4 need ``default_required_votes``; promotions into the
  Core need min(population, ``core_quorum_cap``) and are gated by Core parity
- ACTIVE parity gate: promotion and demotion of Core members are permitted
  only while the Core population is even. Bootstrap completes at an odd
  population, so taken literally this freezes the Core once ACTIVE.
- The last remaining Core member can never be demoted

The engine is pure: callers read the context inside their transaction and
pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cocentrica.domain.governance.context import GovernanceContext
from cocentrica.domain.models.level_change import LevelOperation
from cocentrica.domain.models.member import CORE_LEVEL
from cocentrica.domain.models.system_mode import SystemMode

PROMOTION_NOT_ALLOWED = "Promotion not allowed in current system state"
DEMOTION_NOT_ALLOWED = "Demotion not allowed in current system state"
PROMOTION_NOT_HIGHER = "Target level must be higher than current level"
DEMOTION_NOT_LOWER = "Target level must be lower than current level"
PROMOTION_PARITY_VIOLATION = "Core must remain odd. Promotion would make Core even."
DEMOTION_PARITY_VIOLATION = "Core must remain odd. Demotion would make Core even."
LAST_CORE_MEMBER = "Cannot demote the last remaining Core member"


@dataclass(frozen=True)
class GovernanceRules:
    """Outcome of a rule computation for one operation.

    Attributes:
        operation: The operation evaluated.
        mode: Mode the rules were computed under.
        core_population: Core population the rules were computed with.
        is_core_operation: True if the change enters or leaves the Core.
        permitted: Whether the operation may proceed.
        required_votes: FOR votes needed to apply the change.
        denial_reason: Specific reason when not permitted, if any.
    """

    operation: LevelOperation
    mode: SystemMode
    core_population: int
    is_core_operation: bool
    permitted: bool
    required_votes: int
    denial_reason: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    """Result of the second validation pass."""

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(allowed=True)

    @classmethod
    def denied(cls, reason: str) -> ValidationResult:
        return cls(allowed=False, reason=reason)


def is_core_operation(to_level: int) -> bool:
    """True for a change whose destination is the Core."""
    return to_level == CORE_LEVEL


class RuleEngine:
    """Stateless calculator for level-change permissions and quorums."""

    def compute_rules(
        self,
        operation: LevelOperation,
        from_level: int,
        to_level: int,
        context: GovernanceContext,
    ) -> GovernanceRules:
        """Compute permission and quorum for an operation.

        Args:
            operation: PROMOTE or DEMOTE.
            from_level: Target member's current level.
            to_level: Requested destination level.
            context: Mode, Core population and configuration.

        Returns:
            GovernanceRules for the operation.
        """
        config = context.config
        default_votes = config.default_required_votes
        population = context.core_population
        core = is_core_operation(to_level)

        if context.mode is SystemMode.BOOTSTRAP:
            if not core:
                # Levels 1-4 stay frozen until the Core is seeded
                return self._rules(operation, context, core, False, default_votes)
            seeding = 1 <= population < config.core_bootstrap_size
            if operation is LevelOperation.PROMOTE and seeding:
                # Every existing Core member must approve the next one
                return self._rules(operation, context, core, True, population)
            return self._rules(operation, context, core, False, default_votes)

        if not core:
            return self._rules(operation, context, core, True, default_votes)

        required_votes = max(1, min(population, config.core_quorum_cap))
        if population % 2 == 1:
            return self._rules(
                operation,
                context,
                core,
                False,
                required_votes,
                PROMOTION_PARITY_VIOLATION,
            )
        return self._rules(operation, context, core, True, required_votes)

    def validate_level_change(
        self,
        operation: LevelOperation,
        from_level: int,
        to_level: int,
        context: GovernanceContext,
        live_core_population: Optional[int] = None,
    ) -> ValidationResult:
        """Validate a level change against rules and level ordering.

        The parity gate is re-checked against ``live_core_population``
        rather than the population the context was built with, since the
        Core may have changed in between.

        Args:
            operation: PROMOTE or DEMOTE.
            from_level: Target member's current level.
            to_level: Requested destination level.
            context: Mode, Core population and configuration.
            live_core_population: Core population re-read just before
                validation. Defaults to the context's population.

        Returns:
            ValidationResult with a reason when the change is not allowed.
        """
        rules = self.compute_rules(operation, from_level, to_level, context)
        live = (
            context.core_population
            if live_core_population is None
            else live_core_population
        )
        active = context.mode is SystemMode.ACTIVE

        if operation is LevelOperation.PROMOTE:
            if not rules.permitted:
                reason = rules.denial_reason or PROMOTION_NOT_ALLOWED
                return ValidationResult.denied(reason)
            if to_level <= from_level:
                return ValidationResult.denied(PROMOTION_NOT_HIGHER)
            if to_level == CORE_LEVEL and active and live % 2 == 1:
                return ValidationResult.denied(PROMOTION_PARITY_VIOLATION)
            return ValidationResult.ok()

        if not rules.permitted:
            reason = rules.denial_reason or DEMOTION_NOT_ALLOWED
            return ValidationResult.denied(reason)
        if to_level >= from_level:
            return ValidationResult.denied(DEMOTION_NOT_LOWER)
        if from_level == CORE_LEVEL and active:
            if live == 1:
                return ValidationResult.denied(LAST_CORE_MEMBER)
            if live % 2 == 1:
                return ValidationResult.denied(DEMOTION_PARITY_VIOLATION)
        return ValidationResult.ok()

    @staticmethod
    def _rules(
        operation: LevelOperation,
        context: GovernanceContext,
        core: bool,
        permitted: bool,
        required_votes: int,
        denial_reason: Optional[str] = None,
    ) -> GovernanceRules:
        return GovernanceRules(
            operation=operation,
            mode=context.mode,
            core_population=context.core_population,
            is_core_operation=core,
            permitted=permitted,
            required_votes=required_votes,
            denial_reason=denial_reason,
        )
