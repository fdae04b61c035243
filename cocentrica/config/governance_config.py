"""Governance configuration.

This module defines the tunable governance parameters, with environment
variable overrides for production tuning.

Governance Rules:
- Non-Core level changes need ``default_required_votes`` FOR votes
- Core level changes need min(Core population, ``core_quorum_cap``) FOR votes
- Bootstrap ends when the Core reaches ``core_bootstrap_size`` members

Environment Variables:
- DEFAULT_REQUIRED_VOTES: Quorum for levels 1-4 (default: 2)
- CORE_REQUIRED_VOTES: Cap on the Core quorum (default: 3)
- CORE_BOOTSTRAP_SIZE: Core population that ends bootstrap (default: 3)
- INVITE_TTL_DAYS: Days before an unused invite expires (default: 7)
- LISTING_LIMIT: Maximum members returned by LIST (default: 200)
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class GovernanceConfig:
    """Configuration for quorum sizes and membership limits.

    Attributes:
        default_required_votes: FOR votes needed for non-Core level changes.
        core_quorum_cap: Upper bound on FOR votes needed for Core changes.
        core_bootstrap_size: Core population at which bootstrap completes.
        invite_ttl_days: Lifetime of an unused invite.
        listing_limit: Maximum number of members in a LIST reply.
    """

    default_required_votes: int = 2
    core_quorum_cap: int = 3
    core_bootstrap_size: int = 3
    invite_ttl_days: int = 7
    listing_limit: int = 200

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.default_required_votes < 1:
            raise ValueError(
                "default_required_votes must be at least 1, "
                f"got {self.default_required_votes}"
            )
        if self.core_quorum_cap < 1:
            raise ValueError(
                f"core_quorum_cap must be at least 1, got {self.core_quorum_cap}"
            )
        if self.core_bootstrap_size < 2:
            raise ValueError(
                "core_bootstrap_size must be at least 2, "
                f"got {self.core_bootstrap_size}"
            )
        if self.invite_ttl_days < 1:
            raise ValueError(
                f"invite_ttl_days must be at least 1, got {self.invite_ttl_days}"
            )
        if self.listing_limit < 1:
            raise ValueError(
                f"listing_limit must be at least 1, got {self.listing_limit}"
            )

    @classmethod
    def from_environment(cls) -> "GovernanceConfig":
        """Create config from environment variables with defaults.

        Returns:
            GovernanceConfig with values from environment or defaults.
        """
        return cls(
            default_required_votes=_get_int_env("DEFAULT_REQUIRED_VOTES", 2),
            core_quorum_cap=_get_int_env("CORE_REQUIRED_VOTES", 3),
            core_bootstrap_size=_get_int_env("CORE_BOOTSTRAP_SIZE", 3),
            invite_ttl_days=_get_int_env("INVITE_TTL_DAYS", 7),
            listing_limit=_get_int_env("LISTING_LIMIT", 200),
        )


# Default production config
DEFAULT_GOVERNANCE_CONFIG = GovernanceConfig()
