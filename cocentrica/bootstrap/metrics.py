"""Bootstrap wiring for governance metrics."""

from __future__ import annotations

from cocentrica.infrastructure.monitoring.governance_metrics import (
    METRICS_CONTENT_TYPE,
    GovernanceMetrics,
    generate_metrics,
    get_governance_metrics,
)


class PrometheusMetricsExporter:
    """Prometheus exposition of the governance counters."""

    @property
    def content_type(self) -> str:
        return METRICS_CONTENT_TYPE

    def generate_metrics(self) -> bytes:
        return generate_metrics()


_metrics: GovernanceMetrics | None = None
_metrics_exporter: PrometheusMetricsExporter | None = None


def get_metrics() -> GovernanceMetrics:
    """Get the governance metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = get_governance_metrics()
    return _metrics


def get_metrics_exporter() -> PrometheusMetricsExporter:
    """Get the metrics exporter instance."""
    global _metrics_exporter
    if _metrics_exporter is None:
        _metrics_exporter = PrometheusMetricsExporter()
    return _metrics_exporter


def set_metrics(metrics: GovernanceMetrics) -> None:
    """Set custom metrics (testing/override)."""
    global _metrics
    _metrics = metrics


def reset_metrics() -> None:
    """Reset metrics singletons (testing cleanup)."""
    global _metrics, _metrics_exporter
    _metrics = None
    _metrics_exporter = None
