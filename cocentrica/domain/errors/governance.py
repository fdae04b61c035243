"""Governance domain errors.

This module provides exception classes for level-change governance failures:
proposing a promotion or demotion, and voting on a pending request.

Every governance error carries a ``user_message``. The command layer renders
it as the text reply to the member who issued the command; no error in this
module is fatal to the process.

Error Categories:
- Validation: malformed or missing command input, unknown request
- Authorization: influence or vote guard refused the caller
- Conflict: the request is no longer pending
"""

from __future__ import annotations

from uuid import UUID

from cocentrica.domain.exceptions import CocentricaError


class GovernanceError(CocentricaError):
    """Base error for governance operations.

    Attributes:
        user_message: Text shown to the member, without the "Error: " prefix.
    """

    def __init__(self, user_message: str) -> None:
        self.user_message = user_message
        super().__init__(user_message)


class GovernanceValidationError(GovernanceError):
    """Command input failed validation. No state was mutated."""


class GovernanceAuthorizationError(GovernanceError):
    """The caller is not allowed to perform the operation. No state was mutated."""


class GovernanceConflictError(GovernanceError):
    """The operation conflicts with existing state. No state was mutated."""


class MissingFieldsError(GovernanceValidationError):
    """Raised when a command lacks required ``key: value`` arguments.

    Attributes:
        usage: The expected argument layout, shown back to the caller.
    """

    def __init__(self, usage: str) -> None:
        self.usage = usage
        super().__init__(f"Missing required fields. Format:\n{usage}")


class InvalidLevelError(GovernanceValidationError):
    """Raised when a destination level is not an integer between 1 and 5."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__("Invalid level. Must be between 1 and 5.")


class InvalidVoteDirectionError(GovernanceValidationError):
    """Raised when a vote is neither FOR nor AGAINST."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__("Vote must be FOR or AGAINST.")


class RequestNotFoundError(GovernanceValidationError):
    """Raised when a vote references an unknown level-change request."""

    def __init__(self, request_ref: str) -> None:
        self.request_ref = request_ref
        super().__init__(f"Request #{request_ref} not found.")


class InfluenceDeniedError(GovernanceAuthorizationError):
    """Raised when an actor targets a member above their own level."""

    def __init__(self, actor_level: int, target_level: int) -> None:
        self.actor_level = actor_level
        self.target_level = target_level
        super().__init__("You cannot influence users at your level or higher.")


class VoteNotPermittedError(GovernanceAuthorizationError):
    """Raised when a voter's level is below the request target's level."""

    def __init__(self, request_id: UUID, voter_level: int, target_level: int) -> None:
        self.request_id = request_id
        self.voter_level = voter_level
        self.target_level = target_level
        super().__init__("You cannot vote on this request.")


class LevelChangeNotPermittedError(GovernanceAuthorizationError):
    """Raised when the rule engine refuses a promotion or demotion.

    Attributes:
        reason: The rule engine's explanation, e.g. the parity violation.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RequestNotPendingError(GovernanceConflictError):
    """Raised when voting on a request that has already been resolved."""

    def __init__(self, request_id: UUID, status: str) -> None:
        self.request_id = request_id
        self.status = status
        super().__init__(f"Request #{request_id} is {status.lower()}.")
