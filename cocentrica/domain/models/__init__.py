"""Domain models for Cocentrica governance."""

from cocentrica.domain.models.invite import Invite, is_valid_handle
from cocentrica.domain.models.level_change import (
    LevelChangeRequest,
    LevelHistoryEntry,
    LevelOperation,
    RequestStatus,
    Vote,
    VoteDirection,
)
from cocentrica.domain.models.member import (
    CORE_LEVEL,
    ENTRY_LEVEL,
    MAX_LEVEL,
    MIN_LEVEL,
    Member,
    is_valid_level,
)
from cocentrica.domain.models.system_mode import (
    SYSTEM_MODE_KEY,
    SystemMode,
    SystemModeRecord,
)

__all__ = [
    "CORE_LEVEL",
    "ENTRY_LEVEL",
    "Invite",
    "LevelChangeRequest",
    "LevelHistoryEntry",
    "LevelOperation",
    "MAX_LEVEL",
    "MIN_LEVEL",
    "Member",
    "RequestStatus",
    "SYSTEM_MODE_KEY",
    "SystemMode",
    "SystemModeRecord",
    "Vote",
    "VoteDirection",
    "is_valid_handle",
    "is_valid_level",
]
