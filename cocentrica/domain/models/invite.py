"""Invite domain model.

An invite reserves a handle for an email address until it is redeemed or
expires. Redemption happens outside the governance core; this model only
needs to know whether an invite is still active.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

HANDLE_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def is_valid_handle(handle: str) -> bool:
    """Check a handle against the allowed character set."""
    return bool(HANDLE_PATTERN.match(handle))


@dataclass(frozen=True, eq=True)
class Invite:
    """An invitation to join at the entry level.

    Attributes:
        id: Unique identifier.
        token: Opaque token issued by the invite issuer.
        email: Invitee email address.
        handle: Handle reserved for the invitee.
        name: Invitee display name.
        inviter_id: Member who created the invite.
        expires_at: Expiry time (UTC).
        is_used: True once redeemed.
        created_at: Creation time (UTC).
    """

    id: UUID
    token: str
    email: str
    handle: str
    name: str
    inviter_id: UUID
    expires_at: datetime
    is_used: bool = field(default=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.expires_at.tzinfo is None:
            raise ValueError("expires_at must be timezone-aware (UTC)")

    def is_active_at(self, now: datetime) -> bool:
        """True if the invite is unused and not yet expired at ``now``."""
        return not self.is_used and self.expires_at > now
