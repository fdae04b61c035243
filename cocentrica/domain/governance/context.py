"""Per-operation governance context.

A GovernanceContext is read inside a store transaction, under the mode
lock, and threaded into the rule decisions made there. Nothing in the
engine reads the mode from a global.
"""

from __future__ import annotations

from dataclasses import dataclass

from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.domain.models.system_mode import SystemMode


@dataclass(frozen=True)
class GovernanceContext:
    """Snapshot of the governance state relevant to one operation.

    Attributes:
        mode: System mode as read inside the current transaction.
        core_population: Active level-5 members at read time.
        config: Quorum and bootstrap parameters.
    """

    mode: SystemMode
    core_population: int
    config: GovernanceConfig

    @property
    def is_bootstrap(self) -> bool:
        return self.mode is SystemMode.BOOTSTRAP
