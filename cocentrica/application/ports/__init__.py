"""Application ports - Abstract interfaces for infrastructure adapters.

This module defines the contracts that infrastructure adapters must implement.
Ports enable dependency inversion and make the application layer testable.

Available ports:
- GovernanceStoreProtocol: Transactional governance persistence
- NotifierProtocol: Outbound message delivery
- VisibilityProtocol: Level-filtered member reads
- InviteIssuerProtocol: Invite token issuance
"""

from cocentrica.application.ports.governance_store import (
    GovernanceStoreProtocol,
    GovernanceTransactionProtocol,
)
from cocentrica.application.ports.invite_issuer import InviteIssuerProtocol
from cocentrica.application.ports.notifier import NotifierProtocol
from cocentrica.application.ports.visibility import VisibilityProtocol

__all__: list[str] = [
    "GovernanceStoreProtocol",
    "GovernanceTransactionProtocol",
    "InviteIssuerProtocol",
    "NotifierProtocol",
    "VisibilityProtocol",
]
