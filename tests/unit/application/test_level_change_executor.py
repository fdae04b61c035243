"""Unit tests for the level-change executor.

The executor applies a request exactly once, when the FOR tally reaches the
request's frozen quorum and the change still validates against the live
state.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from cocentrica.application.services.level_change_executor import (
    TARGET_UNAVAILABLE,
    ApplicationStatus,
    LevelChangeExecutor,
)
from cocentrica.application.services.mode_controller import ModeController
from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.domain.errors import ConcurrentModificationError
from cocentrica.domain.governance.context import GovernanceContext
from cocentrica.domain.governance.rule_engine import (
    PROMOTION_NOT_HIGHER,
    PROMOTION_PARITY_VIOLATION,
)
from cocentrica.domain.models.level_change import (
    LevelChangeRequest,
    RequestStatus,
    Vote,
    VoteDirection,
)
from cocentrica.domain.models.member import Member
from cocentrica.domain.models.system_mode import SystemMode, SystemModeRecord
from cocentrica.infrastructure.stubs import GovernanceStoreStub
from tests.helpers import add_members, make_member, put_mode, reload


@pytest.fixture
def executor(config: GovernanceConfig) -> LevelChangeExecutor:
    return LevelChangeExecutor(ModeController(config))


async def _open_request(
    store: GovernanceStoreStub,
    creator: Member,
    target: Member,
    to_level: int,
    required_votes: int,
    voters: list[Member],
) -> LevelChangeRequest:
    request = LevelChangeRequest(
        id=uuid4(),
        creator_id=creator.id,
        target_id=target.id,
        from_level=target.level,
        to_level=to_level,
        required_votes=required_votes,
        reason="Steady contributor",
    )
    async with store.transaction() as tx:
        await tx.create_request(request)
        for voter in voters:
            await tx.insert_vote(
                Vote(
                    id=uuid4(),
                    request_id=request.id,
                    voter_id=voter.id,
                    direction=VoteDirection.FOR,
                )
            )
    return request


class TestApplyIfThresholdCrossed:
    """Tests for apply_if_threshold_crossed."""

    @pytest.mark.asyncio
    async def test_below_quorum_leaves_request_pending(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        ana, bo = make_member("ana", 4), make_member("bo", 2)
        await add_members(store, ana, bo)
        await put_mode(store, SystemMode.ACTIVE)
        request = await _open_request(store, ana, bo, 3, 2, [ana])

        async with store.transaction() as tx:
            outcome = await executor.apply_if_threshold_crossed(tx, request, "ana")

        assert outcome.status is ApplicationStatus.PENDING
        assert outcome.for_votes == 1
        assert outcome.required_votes == 2
        assert not outcome.applied
        assert store.requests[0].status is RequestStatus.PENDING
        assert (await reload(store, bo)).level == 2
        assert store.history == []

    @pytest.mark.asyncio
    async def test_at_quorum_applies_change_and_records_history(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        ana, cy, bo = make_member("ana", 4), make_member("cy", 3), make_member("bo", 2)
        await add_members(store, ana, cy, bo)
        await put_mode(store, SystemMode.ACTIVE)
        request = await _open_request(store, ana, bo, 3, 2, [ana, cy])

        async with store.transaction() as tx:
            outcome = await executor.apply_if_threshold_crossed(tx, request, "cy")

        assert outcome.applied
        assert outcome.mode_activated is False
        assert (await reload(store, bo)).level == 3

        stored = store.requests[0]
        assert stored.status is RequestStatus.APPROVED
        assert stored.resolved_at is not None

        [entry] = store.history
        assert entry.member_id == bo.id
        assert entry.from_level == 2
        assert entry.to_level == 3
        assert entry.request_id == request.id
        assert entry.changed_by == "cy"
        assert entry.reason == "Steady contributor"

    @pytest.mark.asyncio
    async def test_second_application_is_already_resolved(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        ana, bo = make_member("ana", 4), make_member("bo", 2)
        await add_members(store, ana, bo)
        await put_mode(store, SystemMode.ACTIVE)
        request = await _open_request(store, ana, bo, 3, 1, [ana])

        async with store.transaction() as tx:
            first = await executor.apply_if_threshold_crossed(tx, request, "ana")
            second = await executor.apply_if_threshold_crossed(tx, request, "ana")

        assert first.status is ApplicationStatus.APPLIED
        assert second.status is ApplicationStatus.ALREADY_RESOLVED
        assert len(store.history) == 1
        assert (await reload(store, bo)).level == 3

    @pytest.mark.asyncio
    async def test_lost_swap_writes_nothing(
        self, executor: LevelChangeExecutor
    ) -> None:
        request = LevelChangeRequest(
            id=uuid4(),
            creator_id=uuid4(),
            target_id=uuid4(),
            from_level=2,
            to_level=3,
            required_votes=1,
        )
        tx = MagicMock()
        tx.count_for_votes = AsyncMock(return_value=1)
        tx.get_request = AsyncMock(return_value=request)
        tx.get_mode = AsyncMock(return_value=SystemModeRecord(mode=SystemMode.ACTIVE))
        tx.count_core_members = AsyncMock(return_value=3)
        tx.get_member = AsyncMock(return_value=make_member("bo", 2))
        tx.approve_request_cas = AsyncMock(
            side_effect=ConcurrentModificationError(
                request_id=request.id, expected_status=RequestStatus.PENDING
            )
        )
        tx.update_member_level = AsyncMock()
        tx.append_history = AsyncMock()

        outcome = await executor.apply_if_threshold_crossed(tx, request, "ana")

        assert outcome.status is ApplicationStatus.ALREADY_RESOLVED
        tx.update_member_level.assert_not_awaited()
        tx.append_history.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_core_promotion_reaching_bootstrap_size_activates(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        core1, core2 = make_member("core1", 5), make_member("core2", 5)
        senior = make_member("senior", 4)
        await add_members(store, core1, core2, senior)
        request = await _open_request(store, core1, senior, 5, 2, [core1, core2])

        async with store.transaction() as tx:
            outcome = await executor.apply_if_threshold_crossed(tx, request, "core2")

        assert outcome.applied
        assert outcome.mode_activated is True
        assert store.mode is SystemMode.ACTIVE

    @pytest.mark.asyncio
    async def test_core_demotion_does_not_check_mode(self) -> None:
        mode_controller = MagicMock(spec=ModeController)
        mode_controller.read_context = AsyncMock(
            return_value=GovernanceContext(
                mode=SystemMode.ACTIVE,
                core_population=4,
                config=GovernanceConfig(),
            )
        )
        mode_controller.check_transition = AsyncMock(return_value=False)
        executor = LevelChangeExecutor(mode_controller)
        request = LevelChangeRequest(
            id=uuid4(),
            creator_id=uuid4(),
            target_id=uuid4(),
            from_level=5,
            to_level=4,
            required_votes=1,
        )
        tx = MagicMock()
        tx.count_for_votes = AsyncMock(return_value=1)
        tx.get_request = AsyncMock(return_value=request)
        tx.get_member = AsyncMock(return_value=make_member("core2", 5))
        tx.approve_request_cas = AsyncMock(
            return_value=request.approved(datetime.now(timezone.utc))
        )
        tx.update_member_level = AsyncMock()
        tx.append_history = AsyncMock()

        outcome = await executor.apply_if_threshold_crossed(tx, request, "core1")

        assert outcome.applied
        tx.update_member_level.assert_awaited_once_with(request.target_id, 4)
        mode_controller.check_transition.assert_not_awaited()


class TestLiveRevalidation:
    """A request at quorum is re-validated against the live state."""

    @pytest.mark.asyncio
    async def test_second_core_promotion_blocked_by_parity(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        core = [make_member(f"core{i}", 5) for i in range(4)]
        amy, bo = make_member("amy", 4), make_member("bo", 4)
        await add_members(store, *core, amy, bo)
        await put_mode(store, SystemMode.ACTIVE)
        # Both opened while the Core was even
        first = await _open_request(store, core[0], amy, 5, 3, core[:3])
        second = await _open_request(store, core[0], bo, 5, 3, core[:3])

        async with store.transaction() as tx:
            applied = await executor.apply_if_threshold_crossed(tx, first, "core2")
        async with store.transaction() as tx:
            blocked = await executor.apply_if_threshold_crossed(tx, second, "core2")
            population = await tx.count_core_members()

        assert applied.applied
        assert blocked.status is ApplicationStatus.PENDING
        assert blocked.blocked_reason == PROMOTION_PARITY_VIOLATION
        assert blocked.for_votes == 3
        assert population == 5
        assert (await reload(store, bo)).level == 4
        statuses = {r.id: r.status for r in store.requests}
        assert statuses[second.id] is RequestStatus.PENDING
        assert len(store.history) == 1

    @pytest.mark.asyncio
    async def test_promotion_overtaken_by_higher_promotion_is_blocked(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        ana, bo = make_member("ana", 4), make_member("bo", 2)
        await add_members(store, ana, bo)
        await put_mode(store, SystemMode.ACTIVE)
        to_three = await _open_request(store, ana, bo, 3, 1, [ana])
        to_four = await _open_request(store, ana, bo, 4, 1, [ana])

        async with store.transaction() as tx:
            await executor.apply_if_threshold_crossed(tx, to_four, "ana")
        async with store.transaction() as tx:
            outcome = await executor.apply_if_threshold_crossed(tx, to_three, "ana")

        assert outcome.status is ApplicationStatus.PENDING
        assert outcome.blocked_reason == PROMOTION_NOT_HIGHER
        assert (await reload(store, bo)).level == 4
        assert [(e.from_level, e.to_level) for e in store.history] == [(2, 4)]

    @pytest.mark.asyncio
    async def test_history_records_current_level(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        ana, bo = make_member("ana", 4), make_member("bo", 2)
        await add_members(store, ana, bo)
        await put_mode(store, SystemMode.ACTIVE)
        request = await _open_request(store, ana, bo, 4, 1, [ana])
        async with store.transaction() as tx:
            await tx.update_member_level(bo.id, 3)

        async with store.transaction() as tx:
            outcome = await executor.apply_if_threshold_crossed(tx, request, "ana")

        assert outcome.applied
        [entry] = store.history
        assert (entry.from_level, entry.to_level) == (3, 4)

    @pytest.mark.asyncio
    async def test_inactive_target_is_blocked(
        self, executor: LevelChangeExecutor, store: GovernanceStoreStub
    ) -> None:
        ana = make_member("ana", 4)
        bo = make_member("bo", 2, is_active=False)
        await add_members(store, ana, bo)
        await put_mode(store, SystemMode.ACTIVE)
        request = await _open_request(store, ana, bo, 3, 1, [ana])

        async with store.transaction() as tx:
            outcome = await executor.apply_if_threshold_crossed(tx, request, "ana")

        assert outcome.blocked_reason == TARGET_UNAVAILABLE
        assert store.requests[0].status is RequestStatus.PENDING
        assert store.history == []
