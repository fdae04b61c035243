"""Application services for Cocentrica governance."""

from cocentrica.application.services.command_dispatcher import (
    CommandDispatcher,
    CommandFacade,
)
from cocentrica.application.services.command_processing_service import (
    CommandProcessingService,
)
from cocentrica.application.services.level_change_executor import (
    ApplicationOutcome,
    ApplicationStatus,
    LevelChangeExecutor,
)
from cocentrica.application.services.level_change_service import (
    LevelChangeService,
    ProposalResult,
    VoteResult,
)
from cocentrica.application.services.membership_service import (
    ListedMember,
    MemberProfile,
    MembershipService,
)
from cocentrica.application.services.mode_controller import ModeController
from cocentrica.application.services.request_store import RequestStore
from cocentrica.application.services.vote_ledger import VoteCastResult, VoteLedger

__all__ = [
    "ApplicationOutcome",
    "ApplicationStatus",
    "CommandDispatcher",
    "CommandFacade",
    "CommandProcessingService",
    "LevelChangeExecutor",
    "LevelChangeService",
    "ListedMember",
    "MemberProfile",
    "MembershipService",
    "ModeController",
    "ProposalResult",
    "RequestStore",
    "VoteCastResult",
    "VoteLedger",
]
