"""Monitoring: Prometheus counters for governance activity."""

from cocentrica.infrastructure.monitoring.governance_metrics import (
    METRICS_CONTENT_TYPE,
    GovernanceMetrics,
    generate_metrics,
    get_governance_metrics,
    reset_governance_metrics,
)

__all__ = [
    "METRICS_CONTENT_TYPE",
    "GovernanceMetrics",
    "generate_metrics",
    "get_governance_metrics",
    "reset_governance_metrics",
]
