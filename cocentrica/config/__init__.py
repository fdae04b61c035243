"""Configuration module for Cocentrica.

Available Configurations:
- GovernanceConfig: Quorum sizes, bootstrap size and membership limits
"""

from cocentrica.config.governance_config import (
    DEFAULT_GOVERNANCE_CONFIG,
    GovernanceConfig,
)

__all__ = [
    "DEFAULT_GOVERNANCE_CONFIG",
    "GovernanceConfig",
]
