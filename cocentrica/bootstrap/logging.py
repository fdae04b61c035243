"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from cocentrica.infrastructure.observability import (
    configure_structlog as _configure_structlog,
)


def configure_structlog(environment: str | None = None) -> None:
    """Configure structlog for the given environment (default: $ENVIRONMENT)."""
    _configure_structlog(
        environment=environment or os.environ.get("ENVIRONMENT", "development")
    )


__all__ = ["configure_structlog"]
