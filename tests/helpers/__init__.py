"""Test helpers for Cocentrica tests.

Helpers:
    make_member: Member factory with predictable email and name
    add_members: Insert members into a store
    put_mode: Write the system mode record
    reload: Read a member's current state

Usage:
    from tests.helpers import make_member
"""

from tests.helpers.governance_factories import (
    add_members,
    make_member,
    put_mode,
    reload,
)

__all__ = ["add_members", "make_member", "put_mode", "reload"]
