"""Prometheus metrics for governance activity.

Counters only: how many requests were opened, how many votes were cast, how
many level changes were applied and how often the mode changed. No metric
carries member identities or levels above the operation itself.

Labels: environment on every metric, plus the per-metric label listed below.
"""

import os
import threading

from prometheus_client import CollectorRegistry, Counter, generate_latest

from cocentrica.domain.models.level_change import LevelOperation, VoteDirection
from cocentrica.domain.models.system_mode import SystemMode

METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_collector_lock = threading.Lock()


class GovernanceMetrics:
    """Collects governance counters on an injectable registry.

    Attributes:
        requests_created_total: Requests opened, by operation.
        votes_cast_total: Votes cast, by direction and whether it was a re-vote.
        level_changes_applied_total: Applied changes, by operation.
        mode_transitions_total: Mode writes, by new mode.
        commands_total: Commands processed, by command type.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize governance counters.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")

        self.requests_created_total = Counter(
            name="governance_requests_created_total",
            documentation="Level-change requests created",
            labelnames=["environment", "operation"],
            registry=self._registry,
        )
        self.votes_cast_total = Counter(
            name="governance_votes_cast_total",
            documentation="Votes cast on level-change requests",
            labelnames=["environment", "direction", "revote"],
            registry=self._registry,
        )
        self.level_changes_applied_total = Counter(
            name="governance_level_changes_applied_total",
            documentation="Level changes applied after reaching quorum",
            labelnames=["environment", "operation"],
            registry=self._registry,
        )
        self.mode_transitions_total = Counter(
            name="governance_mode_transitions_total",
            documentation="System mode transitions",
            labelnames=["environment", "mode"],
            registry=self._registry,
        )
        self.commands_total = Counter(
            name="governance_commands_total",
            documentation="Member commands processed",
            labelnames=["environment", "command"],
            registry=self._registry,
        )

    def record_request_created(self, operation: LevelOperation) -> None:
        self.requests_created_total.labels(
            environment=self._environment, operation=operation.value
        ).inc()

    def record_vote(self, direction: VoteDirection, revote: bool) -> None:
        self.votes_cast_total.labels(
            environment=self._environment,
            direction=direction.value,
            revote=str(revote).lower(),
        ).inc()

    def record_level_change_applied(self, operation: LevelOperation) -> None:
        self.level_changes_applied_total.labels(
            environment=self._environment, operation=operation.value
        ).inc()

    def record_mode_transition(self, mode: SystemMode) -> None:
        self.mode_transitions_total.labels(
            environment=self._environment, mode=mode.value
        ).inc()

    def record_command(self, command: str) -> None:
        """Count a processed command.

        Args:
            command: Command type name, e.g. "VOTE" or "UNKNOWN".
        """
        self.commands_total.labels(
            environment=self._environment, command=command
        ).inc()

    def get_registry(self) -> CollectorRegistry:
        """Get the registry backing these counters."""
        return self._registry


_governance_metrics: GovernanceMetrics | None = None


def get_governance_metrics() -> GovernanceMetrics:
    """Get the process-wide GovernanceMetrics instance (thread-safe)."""
    global _governance_metrics
    if _governance_metrics is None:
        with _collector_lock:
            if _governance_metrics is None:
                _governance_metrics = GovernanceMetrics()
    return _governance_metrics


def generate_metrics() -> bytes:
    """Render the governance counters in Prometheus exposition format."""
    return generate_latest(get_governance_metrics().get_registry())


def reset_governance_metrics() -> None:
    """Reset the process-wide instance (for testing only)."""
    global _governance_metrics
    with _collector_lock:
        _governance_metrics = None
