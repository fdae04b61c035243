"""Mode controller.

Tracks the global governance phase and performs the one-way BOOTSTRAP ->
ACTIVE transition.

Governance Rules:
- Initial mode is BOOTSTRAP (written by the seed operation)
- The transition fires when the Core population reaches
  ``core_bootstrap_size`` (default 3)
- The transition is idempotent and irreversible: re-checking while ACTIVE
  is a no-op, and nothing ever writes BOOTSTRAP back
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from structlog import get_logger

from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.domain.governance.context import GovernanceContext
from cocentrica.domain.models.system_mode import SystemMode

if TYPE_CHECKING:
    from cocentrica.application.ports.governance_store import (
        GovernanceTransactionProtocol,
    )
    from cocentrica.infrastructure.monitoring.governance_metrics import (
        GovernanceMetrics,
    )

logger = get_logger(__name__)


class ModeController:
    """Reads the governance context and advances the mode.

    All methods operate on a caller-supplied transaction so that the mode is
    read and written under the same transaction as the writes that depend
    on it.
    """

    def __init__(
        self,
        config: GovernanceConfig,
        metrics: GovernanceMetrics | None = None,
    ) -> None:
        """Initialize the mode controller.

        Args:
            config: Governance parameters (bootstrap size, quorums).
            metrics: Optional metrics collector for transition counts.
        """
        self._config = config
        self._metrics = metrics

    @property
    def config(self) -> GovernanceConfig:
        return self._config

    async def read_context(
        self, tx: GovernanceTransactionProtocol
    ) -> GovernanceContext:
        """Read the mode and Core population once for this operation.

        Locks the mode record first, so the population read here cannot
        change under the caller until its transaction ends.

        Args:
            tx: The operation's transaction.

        Returns:
            GovernanceContext to thread through rule decisions.
        """
        record = await tx.get_mode(for_update=True)
        population = await tx.count_core_members()
        return GovernanceContext(
            mode=record.mode,
            core_population=population,
            config=self._config,
        )

    async def check_transition(
        self,
        tx: GovernanceTransactionProtocol,
        updated_by: str | None = None,
    ) -> bool:
        """Move BOOTSTRAP to ACTIVE if the Core has reached its minimum size.

        Args:
            tx: The transaction that just changed the Core.
            updated_by: Handle recorded as the writer of the new mode.

        Returns:
            True if this call performed the transition, False otherwise.
        """
        record = await tx.get_mode()
        if record.mode is SystemMode.ACTIVE:
            return False

        population = await tx.count_core_members()
        if population < self._config.core_bootstrap_size:
            logger.debug(
                "bootstrap_continues",
                core_population=population,
                bootstrap_size=self._config.core_bootstrap_size,
            )
            return False

        await tx.set_mode(SystemMode.ACTIVE, updated_by)
        logger.info(
            "system_mode_activated",
            core_population=population,
            updated_by=updated_by,
        )
        if self._metrics is not None:
            self._metrics.record_mode_transition(SystemMode.ACTIVE)
        return True
