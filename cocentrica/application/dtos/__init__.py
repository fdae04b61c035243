"""Application DTOs (Data Transfer Objects).

These DTOs carry command input across the boundary between the external
command parser and the governance services. They are distinct from:
- Domain models (immutable business records)
- Persistence rows (database schema)
"""

from cocentrica.application.dtos.commands import (
    CommandType,
    InviteArgs,
    LevelChangeArgs,
    ParsedCommand,
    VoteArgs,
)

__all__ = [
    "CommandType",
    "InviteArgs",
    "LevelChangeArgs",
    "ParsedCommand",
    "VoteArgs",
]
