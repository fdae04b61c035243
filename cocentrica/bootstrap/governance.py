"""Bootstrap wiring for governance dependencies.

Builds the service graph from a store, a notifier, a visibility filter and an
invite issuer. With DATABASE_URL set the PostgreSQL adapters are used;
otherwise the in-memory stubs are wired for development.

Environment is loaded from a ``.env`` file (python-dotenv) before the
governance configuration is read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from structlog import get_logger

from cocentrica.application.ports.governance_store import GovernanceStoreProtocol
from cocentrica.application.ports.invite_issuer import InviteIssuerProtocol
from cocentrica.application.ports.notifier import NotifierProtocol
from cocentrica.application.ports.visibility import VisibilityProtocol
from cocentrica.application.services.command_dispatcher import CommandDispatcher
from cocentrica.application.services.command_processing_service import (
    CommandProcessingService,
)
from cocentrica.application.services.level_change_service import (
    LevelChangeService,
)
from cocentrica.application.services.membership_service import MembershipService
from cocentrica.application.services.mode_controller import ModeController
from cocentrica.bootstrap.metrics import get_metrics
from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.infrastructure.adapters.invite_issuer import SecretsInviteIssuer
from cocentrica.infrastructure.monitoring.governance_metrics import (
    GovernanceMetrics,
)
from cocentrica.infrastructure.stubs.governance_store_stub import GovernanceStoreStub
from cocentrica.infrastructure.stubs.notifier_stub import NotifierStub
from cocentrica.infrastructure.stubs.visibility_stub import VisibilityStub

logger = get_logger()


@dataclass(frozen=True)
class GovernanceServices:
    """The wired service graph.

    Attributes:
        store: Transactional governance store.
        config: Governance parameters.
        mode_controller: Mode reads and the bootstrap transition.
        level_changes: PROMOTE / DEMOTE / VOTE orchestration.
        membership: ME / LIST / INVITE.
        dispatcher: The command facade.
        processor: Sender resolution and reply delivery.
    """

    store: GovernanceStoreProtocol
    config: GovernanceConfig
    mode_controller: ModeController
    level_changes: LevelChangeService
    membership: MembershipService
    dispatcher: CommandDispatcher
    processor: CommandProcessingService


def build_governance_services(
    store: GovernanceStoreProtocol,
    notifier: NotifierProtocol,
    visibility: VisibilityProtocol,
    invite_issuer: InviteIssuerProtocol,
    config: GovernanceConfig | None = None,
    metrics: GovernanceMetrics | None = None,
) -> GovernanceServices:
    """Wire the governance services around the given adapters."""
    config = config or GovernanceConfig()
    mode_controller = ModeController(config, metrics=metrics)
    level_changes = LevelChangeService(store, mode_controller, metrics=metrics)
    membership = MembershipService(
        store=store,
        visibility=visibility,
        notifier=notifier,
        invite_issuer=invite_issuer,
        config=config,
    )
    dispatcher = CommandDispatcher(level_changes, membership, metrics=metrics)
    processor = CommandProcessingService(store, dispatcher, notifier)
    return GovernanceServices(
        store=store,
        config=config,
        mode_controller=mode_controller,
        level_changes=level_changes,
        membership=membership,
        dispatcher=dispatcher,
        processor=processor,
    )


_services: GovernanceServices | None = None


def get_governance_services(
    notifier: NotifierProtocol | None = None,
) -> GovernanceServices:
    """Get the process-wide service graph, building it on first call.

    Args:
        notifier: Outbound delivery adapter. Defaults to the in-memory stub.
    """
    global _services
    if _services is not None:
        return _services

    load_dotenv()
    config = GovernanceConfig.from_environment()
    notifier = notifier or NotifierStub()
    issuer = SecretsInviteIssuer()

    if os.environ.get("DATABASE_URL"):
        from cocentrica.bootstrap.database import get_session_factory
        from cocentrica.infrastructure.adapters.persistence import (
            PostgresGovernanceStore,
            PostgresVisibility,
        )

        session_factory = get_session_factory()
        store: GovernanceStoreProtocol = PostgresGovernanceStore(session_factory)
        visibility: VisibilityProtocol = PostgresVisibility(session_factory)
        logger.info("governance_store_initialized", store_type="PostgreSQL")
    else:
        stub = GovernanceStoreStub()
        store = stub
        visibility = VisibilityStub(stub)
        logger.warning(
            "governance_store_initialized",
            store_type="in-memory",
            message="DATABASE_URL not set; state is lost on restart",
        )

    _services = build_governance_services(
        store=store,
        notifier=notifier,
        visibility=visibility,
        invite_issuer=issuer,
        config=config,
        metrics=get_metrics(),
    )
    return _services


def reset_governance_services() -> None:
    """Reset the service graph (testing cleanup)."""
    global _services
    _services = None
