"""System mode domain model.

The system starts in BOOTSTRAP while the Core is seeded and moves to ACTIVE
exactly once, when the Core reaches its minimum size. There is no way back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

SYSTEM_MODE_KEY = "system_mode"


class SystemMode(Enum):
    """Global governance phase."""

    BOOTSTRAP = "BOOTSTRAP"
    ACTIVE = "ACTIVE"


@dataclass(frozen=True)
class SystemModeRecord:
    """The single persisted mode value.

    Attributes:
        mode: Current governance phase.
        updated_by: Handle that caused the last write, if known.
        updated_at: Time of the last write (UTC).
    """

    mode: SystemMode = SystemMode.BOOTSTRAP
    updated_by: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
