"""Unit tests for governance service wiring."""

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from cocentrica.application.dtos.commands import ParsedCommand
from cocentrica.bootstrap.governance import (
    build_governance_services,
    get_governance_services,
    reset_governance_services,
)
from cocentrica.bootstrap.metrics import (
    get_metrics,
    get_metrics_exporter,
    reset_metrics,
    set_metrics,
)
from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.infrastructure.adapters.invite_issuer import SecretsInviteIssuer
from cocentrica.infrastructure.monitoring.governance_metrics import (
    METRICS_CONTENT_TYPE,
    GovernanceMetrics,
    reset_governance_metrics,
)
from cocentrica.infrastructure.stubs import (
    GovernanceStoreStub,
    NotifierStub,
    VisibilityStub,
)
from tests.helpers import add_members, make_member


@pytest.fixture(autouse=True)
def _reset() -> Iterator[None]:
    reset_governance_services()
    reset_metrics()
    reset_governance_metrics()
    yield
    reset_governance_services()
    reset_metrics()
    reset_governance_metrics()


class TestBuildGovernanceServices:
    def test_wires_shared_collaborators(self) -> None:
        store = GovernanceStoreStub()
        config = GovernanceConfig(default_required_votes=3)

        services = build_governance_services(
            store=store,
            notifier=NotifierStub(),
            visibility=VisibilityStub(store),
            invite_issuer=SecretsInviteIssuer(base_url="https://c.test"),
            config=config,
        )

        assert services.store is store
        assert services.config is config
        assert services.mode_controller.config is config

    def test_defaults_config(self) -> None:
        store = GovernanceStoreStub()

        services = build_governance_services(
            store=store,
            notifier=NotifierStub(),
            visibility=VisibilityStub(store),
            invite_issuer=SecretsInviteIssuer(base_url="https://c.test"),
        )

        assert services.config == GovernanceConfig()


class TestGetGovernanceServices:
    def test_uses_stubs_without_database_url(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        services = get_governance_services()

        assert isinstance(services.store, GovernanceStoreStub)
        assert get_governance_services() is services

    def test_reads_config_from_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("INVITE_TTL_DAYS", "3")

        services = get_governance_services()

        assert services.config.invite_ttl_days == 3

    @pytest.mark.asyncio
    async def test_wired_graph_processes_commands(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        notifier = NotifierStub()
        services = get_governance_services(notifier=notifier)
        ana = make_member("ana", 2)
        await add_members(services.store, ana)

        await services.processor.process(ana.email, ParsedCommand.of("ME"), "me")

        message = notifier.last_to(ana.email)
        assert message is not None
        assert message.subject == "Re: me"

    def test_reset_rebuilds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        first = get_governance_services()

        reset_governance_services()

        assert get_governance_services() is not first


class TestMetricsBootstrap:
    def test_set_and_reset_metrics(self) -> None:
        custom = GovernanceMetrics(CollectorRegistry())

        set_metrics(custom)
        assert get_metrics() is custom

        reset_metrics()
        assert get_metrics() is not custom

    def test_exporter_renders_exposition_format(self) -> None:
        exporter = get_metrics_exporter()

        get_metrics().record_command("ME")

        assert exporter.content_type == METRICS_CONTENT_TYPE
        assert b"governance_commands_total" in exporter.generate_metrics()
