"""Unit tests for MembershipService (ME, LIST and INVITE)."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from cocentrica.application.dtos.commands import InviteArgs
from cocentrica.application.services.membership_service import (
    INVITE_SUBJECT,
    MembershipService,
)
from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.domain.errors import (
    ActiveInviteExistsError,
    EmailRegisteredError,
    HandleTakenError,
    InvalidHandleError,
    NotificationDeliveryError,
)
from cocentrica.domain.models.invite import Invite
from cocentrica.domain.models.member import CORE_LEVEL
from cocentrica.infrastructure.adapters.invite_issuer import SecretsInviteIssuer
from cocentrica.infrastructure.stubs import (
    GovernanceStoreStub,
    NotifierStub,
    VisibilityStub,
)
from tests.helpers import add_members, make_member


@pytest.fixture
def membership(
    store: GovernanceStoreStub,
    visibility: VisibilityStub,
    notifier: NotifierStub,
    invite_issuer: SecretsInviteIssuer,
    config: GovernanceConfig,
) -> MembershipService:
    return MembershipService(store, visibility, notifier, invite_issuer, config)


def _invite_args(
    email: str = "new@cocentrica.test", handle: str = "newbie", name: str = "New"
) -> InviteArgs:
    return InviteArgs(email=email, handle=handle, name=name)


class TestProfile:
    """Tests for the ME profile."""

    @pytest.mark.asyncio
    async def test_counts_used_invites_and_visible_members(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(
            store,
            ana,
            make_member("bo", 2),
            make_member("cy", 4),
            make_member("dee", 1, is_active=False),
        )
        first = await membership.invite(ana, _invite_args("a@x.test", "inv_a"))
        await membership.invite(ana, _invite_args("b@x.test", "inv_b"))
        store.mark_invite_used(first.id)

        profile = await membership.profile(ana)

        assert profile.member == ana
        assert profile.used_invites == 1
        # ana and bo; cy is above level 3 and dee is inactive
        assert profile.visible_count == 2


class TestListing:
    """Tests for the LIST visibility filter."""

    @pytest.mark.asyncio
    async def test_non_core_viewer_sees_lower_levels_without_email(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        viewer = make_member("viewer", 2)
        await add_members(
            store,
            viewer,
            make_member("alpha", 1),
            make_member("gamma", 3),
            make_member("omega", 5),
            make_member("zed", 2, is_active=False),
        )

        listed = await membership.listing(viewer)

        assert [m.handle for m in listed] == ["alpha", "viewer"]
        assert all(m.email is None for m in listed)

    @pytest.mark.asyncio
    async def test_core_viewer_sees_everyone_with_email(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        core = make_member("core", 5)
        await add_members(store, core, make_member("alpha", 1))

        listed = await membership.listing(core)

        assert [(m.handle, m.email) for m in listed] == [
            ("alpha", "alpha@cocentrica.test"),
            ("core", "core@cocentrica.test"),
        ]

    @pytest.mark.asyncio
    async def test_listing_is_capped(
        self,
        store: GovernanceStoreStub,
        visibility: VisibilityStub,
        notifier: NotifierStub,
        invite_issuer: SecretsInviteIssuer,
    ) -> None:
        membership = MembershipService(
            store,
            visibility,
            notifier,
            invite_issuer,
            GovernanceConfig(listing_limit=2),
        )
        core = make_member("core", 5)
        await add_members(
            store,
            core,
            make_member("a1", 1),
            make_member("a2", 1),
            make_member("a3", 1),
        )

        listed = await membership.listing(core)

        assert [m.handle for m in listed] == ["a1", "a2"]


class TestInvite:
    """Tests for INVITE."""

    @pytest.mark.asyncio
    async def test_creates_invite_and_sends_link(
        self,
        membership: MembershipService,
        store: GovernanceStoreStub,
        notifier: NotifierStub,
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)
        before = datetime.now(timezone.utc)

        invite = await membership.invite(ana, _invite_args())

        assert store.invites == [invite]
        assert invite.inviter_id == ana.id
        assert invite.handle == "newbie"
        assert invite.is_used is False
        assert before + timedelta(days=7) <= invite.expires_at
        assert invite.expires_at <= datetime.now(timezone.utc) + timedelta(days=7)

        message = notifier.last_to("new@cocentrica.test")
        assert message is not None
        assert message.subject == INVITE_SUBJECT
        assert message.recipient_level == CORE_LEVEL
        assert "by @ana" in message.body
        assert (
            f"https://cocentrica.test/accept?token={invite.token}" in message.body
        )
        assert "expire in 7 days" in message.body

    @pytest.mark.asyncio
    async def test_rejects_invalid_handle(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)

        with pytest.raises(InvalidHandleError):
            await membership.invite(ana, _invite_args(handle="no spaces"))

        assert store.invites == []

    @pytest.mark.asyncio
    async def test_rejects_taken_handle(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)

        with pytest.raises(HandleTakenError) as exc_info:
            await membership.invite(ana, _invite_args(handle="ana"))

        assert exc_info.value.user_message == "Handle @ana is already taken."

    @pytest.mark.asyncio
    async def test_rejects_registered_email(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)

        with pytest.raises(EmailRegisteredError):
            await membership.invite(ana, _invite_args(email="ana@cocentrica.test"))

    @pytest.mark.asyncio
    async def test_rejects_second_active_invite(
        self,
        membership: MembershipService,
        store: GovernanceStoreStub,
        notifier: NotifierStub,
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)
        await membership.invite(ana, _invite_args())

        with pytest.raises(ActiveInviteExistsError):
            await membership.invite(ana, _invite_args(handle="other"))

        assert len(store.invites) == 1
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_expired_invite_does_not_block(
        self, membership: MembershipService, store: GovernanceStoreStub
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)
        async with store.transaction() as tx:
            await tx.create_invite(
                Invite(
                    id=uuid4(),
                    token="stale",
                    email="new@cocentrica.test",
                    handle="newbie",
                    name="New",
                    inviter_id=ana.id,
                    expires_at=datetime.now(timezone.utc) - timedelta(days=1),
                )
            )

        await membership.invite(ana, _invite_args())

        assert len(store.invites) == 2

    @pytest.mark.asyncio
    async def test_delivery_failure_keeps_invite(
        self,
        membership: MembershipService,
        store: GovernanceStoreStub,
        notifier: NotifierStub,
    ) -> None:
        ana = make_member("ana", 3)
        await add_members(store, ana)
        notifier.fail_recipients.add("new@cocentrica.test")

        with pytest.raises(NotificationDeliveryError) as exc_info:
            await membership.invite(ana, _invite_args())

        assert exc_info.value.user_message == (
            "Failed to send invite email. Please try again."
        )
        assert len(store.invites) == 1
