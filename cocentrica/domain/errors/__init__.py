"""Domain errors for Cocentrica.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from CocentricaError.
"""

from cocentrica.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from cocentrica.domain.errors.governance import (
    GovernanceAuthorizationError,
    GovernanceConflictError,
    GovernanceError,
    GovernanceValidationError,
    InfluenceDeniedError,
    InvalidLevelError,
    InvalidVoteDirectionError,
    LevelChangeNotPermittedError,
    MissingFieldsError,
    RequestNotFoundError,
    RequestNotPendingError,
    VoteNotPermittedError,
)
from cocentrica.domain.errors.membership import (
    ActiveInviteExistsError,
    EmailRegisteredError,
    HandleTakenError,
    InvalidHandleError,
    MemberNotFoundError,
    NotificationDeliveryError,
)

__all__: list[str] = [
    "ActiveInviteExistsError",
    "ConcurrentModificationError",
    "EmailRegisteredError",
    "GovernanceAuthorizationError",
    "GovernanceConflictError",
    "GovernanceError",
    "GovernanceValidationError",
    "HandleTakenError",
    "InfluenceDeniedError",
    "InvalidHandleError",
    "InvalidLevelError",
    "InvalidVoteDirectionError",
    "LevelChangeNotPermittedError",
    "MemberNotFoundError",
    "MissingFieldsError",
    "NotificationDeliveryError",
    "RequestNotFoundError",
    "RequestNotPendingError",
    "VoteNotPermittedError",
]
