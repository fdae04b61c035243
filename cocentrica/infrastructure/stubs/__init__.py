"""In-memory stubs for development and testing."""

from cocentrica.infrastructure.stubs.governance_store_stub import (
    GovernanceStoreStub,
    GovernanceTransactionStub,
)
from cocentrica.infrastructure.stubs.notifier_stub import (
    NotifierStub,
    SentMessage,
    sanitize_for_level,
)
from cocentrica.infrastructure.stubs.visibility_stub import VisibilityStub

__all__ = [
    "GovernanceStoreStub",
    "GovernanceTransactionStub",
    "NotifierStub",
    "SentMessage",
    "VisibilityStub",
    "sanitize_for_level",
]
