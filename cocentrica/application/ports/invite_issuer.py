"""Invite issuer port.

Issues the opaque token carried by an invitation. Redemption and credential
setup happen outside the governance core.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol


class InviteIssuerProtocol(Protocol):
    """Protocol for invite token issuance."""

    @abstractmethod
    def issue_token(self) -> str:
        """Return a new, unguessable invite token."""
        ...

    @abstractmethod
    def invite_link(self, token: str) -> str:
        """Return the redemption link for a token."""
        ...
