"""Membership domain errors.

Errors raised while resolving members and issuing invites.

Error Categories:
- Validation: bad handle format, unknown member
- Conflict: duplicate handle, duplicate email, duplicate active invite
- Delivery: the notifier failed after the invite was committed
"""

from __future__ import annotations

from cocentrica.domain.errors.governance import (
    GovernanceConflictError,
    GovernanceError,
    GovernanceValidationError,
)


class InvalidHandleError(GovernanceValidationError):
    """Raised when a handle contains characters outside ``[a-zA-Z0-9_-]``."""

    def __init__(self, handle: str) -> None:
        self.handle = handle
        super().__init__(
            "Handle must contain only letters, numbers, underscores, and hyphens."
        )


class MemberNotFoundError(GovernanceValidationError):
    """Raised when a handle does not resolve to an active member."""

    def __init__(self, handle: str) -> None:
        self.handle = handle
        super().__init__(f"User @{handle} not found.")


class HandleTakenError(GovernanceConflictError):
    """Raised when inviting a handle that already belongs to a member."""

    def __init__(self, handle: str) -> None:
        self.handle = handle
        super().__init__(f"Handle @{handle} is already taken.")


class EmailRegisteredError(GovernanceConflictError):
    """Raised when inviting an email that already belongs to a member."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Email is already registered.")


class ActiveInviteExistsError(GovernanceConflictError):
    """Raised when an unexpired, unused invite already exists for the email."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("An active invite already exists for this email.")


class NotificationDeliveryError(GovernanceError):
    """Raised by notifier adapters when a message could not be delivered.

    State committed before delivery is not rolled back.
    """

    def __init__(self, recipient: str, detail: str = "") -> None:
        self.recipient = recipient
        self.detail = detail
        super().__init__("Failed to send invite email. Please try again.")
