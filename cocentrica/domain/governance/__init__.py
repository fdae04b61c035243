"""Pure governance rules: influence guard, rule engine and context."""

from cocentrica.domain.governance.context import GovernanceContext
from cocentrica.domain.governance.influence_guard import can_influence, can_vote
from cocentrica.domain.governance.rule_engine import (
    GovernanceRules,
    RuleEngine,
    ValidationResult,
    is_core_operation,
)

__all__ = [
    "GovernanceContext",
    "GovernanceRules",
    "RuleEngine",
    "ValidationResult",
    "can_influence",
    "can_vote",
    "is_core_operation",
]
