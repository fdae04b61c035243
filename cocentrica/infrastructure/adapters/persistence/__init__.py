"""PostgreSQL persistence adapters."""

from cocentrica.infrastructure.adapters.persistence.postgres_governance_store import (
    PostgresGovernanceStore,
    PostgresGovernanceTransaction,
)
from cocentrica.infrastructure.adapters.persistence.postgres_visibility import (
    PostgresVisibility,
)

__all__ = [
    "PostgresGovernanceStore",
    "PostgresGovernanceTransaction",
    "PostgresVisibility",
]
