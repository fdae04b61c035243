"""
Pytest configuration and shared fixtures for Cocentrica tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async collaborators in unit tests
- Use the in-memory stubs for stores, notifier and visibility
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest
from prometheus_client import CollectorRegistry

from cocentrica.bootstrap.governance import (
    GovernanceServices,
    build_governance_services,
)
from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.infrastructure.adapters.invite_issuer import SecretsInviteIssuer
from cocentrica.infrastructure.monitoring.governance_metrics import (
    GovernanceMetrics,
)
from cocentrica.infrastructure.stubs import (
    GovernanceStoreStub,
    NotifierStub,
    VisibilityStub,
)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from cocentrica import __version__

    return __version__


@pytest.fixture
def config() -> GovernanceConfig:
    """Default governance configuration."""
    return GovernanceConfig()


@pytest.fixture
def store() -> GovernanceStoreStub:
    """Fresh in-memory governance store."""
    return GovernanceStoreStub()


@pytest.fixture
def notifier() -> NotifierStub:
    """Recording notifier."""
    return NotifierStub()


@pytest.fixture
def visibility(store: GovernanceStoreStub) -> VisibilityStub:
    """Visibility filter over the in-memory store."""
    return VisibilityStub(store)


@pytest.fixture
def invite_issuer() -> SecretsInviteIssuer:
    """Invite issuer with a fixed base URL."""
    return SecretsInviteIssuer(base_url="https://cocentrica.test")


@pytest.fixture
def metrics() -> GovernanceMetrics:
    """Governance metrics on an isolated registry."""
    return GovernanceMetrics(registry=CollectorRegistry())


@pytest.fixture
def services(
    store: GovernanceStoreStub,
    notifier: NotifierStub,
    visibility: VisibilityStub,
    invite_issuer: SecretsInviteIssuer,
    config: GovernanceConfig,
    metrics: GovernanceMetrics,
) -> GovernanceServices:
    """Fully wired governance services over the stubs."""
    return build_governance_services(
        store=store,
        notifier=notifier,
        visibility=visibility,
        invite_issuer=invite_issuer,
        config=config,
        metrics=metrics,
    )
