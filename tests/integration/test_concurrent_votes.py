"""Concurrent commands apply each change at most once and keep the Core odd."""

import asyncio

import pytest

from cocentrica.application.dtos.commands import LevelChangeArgs, VoteArgs
from cocentrica.bootstrap.governance import GovernanceServices
from cocentrica.domain.errors import RequestNotPendingError
from cocentrica.domain.models.level_change import LevelOperation, VoteDirection
from cocentrica.domain.models.system_mode import SystemMode
from cocentrica.infrastructure.stubs import GovernanceStoreStub
from tests.helpers import add_members, make_member, put_mode, reload


@pytest.mark.asyncio
async def test_racing_votes_apply_once(
    services: GovernanceServices, store: GovernanceStoreStub
) -> None:
    ana, bo = make_member("ana", 4), make_member("bo", 2)
    voters = [make_member(f"voter{i}", 3) for i in range(5)]
    await add_members(store, ana, bo, *voters)
    await put_mode(store, SystemMode.ACTIVE)
    proposal = await services.level_changes.propose(
        ana, LevelOperation.PROMOTE, LevelChangeArgs(handle="bo", to_level=3)
    )
    args = VoteArgs(request=str(proposal.request.id), vote=VoteDirection.FOR)

    results = await asyncio.gather(
        *(services.level_changes.vote(voter, args) for voter in voters),
        return_exceptions=True,
    )

    applied = [r for r in results if not isinstance(r, BaseException) and r.applied]
    rejected = [r for r in results if isinstance(r, BaseException)]
    assert len(applied) == 1
    assert len(rejected) == len(voters) - 1
    assert all(isinstance(r, RequestNotPendingError) for r in rejected)
    assert (await reload(store, bo)).level == 3
    assert len(store.history) == 1
    # Rejected votes rolled back with their transactions
    assert len(store.votes) == 2


@pytest.mark.asyncio
async def test_racing_proposals_each_get_their_own_request(
    services: GovernanceServices, store: GovernanceStoreStub
) -> None:
    ana, cy, bo = make_member("ana", 4), make_member("cy", 4), make_member("bo", 2)
    await add_members(store, ana, cy, bo)
    await put_mode(store, SystemMode.ACTIVE)
    args = LevelChangeArgs(handle="bo", to_level=3)

    first, second = await asyncio.gather(
        services.level_changes.propose(ana, LevelOperation.PROMOTE, args),
        services.level_changes.propose(cy, LevelOperation.PROMOTE, args),
    )

    assert first.request.id != second.request.id
    assert not first.applied and not second.applied
    assert len(store.requests) == 2


@pytest.mark.asyncio
async def test_racing_bootstrap_promotions_recompute_quorum(
    services: GovernanceServices, store: GovernanceStoreStub
) -> None:
    founder = make_member("founder", 5)
    await add_members(store, founder, make_member("sen1", 4), make_member("sen2", 4))

    results = await asyncio.gather(
        *(
            services.level_changes.propose(
                founder,
                LevelOperation.PROMOTE,
                LevelChangeArgs(handle=handle, to_level=5),
            )
            for handle in ("sen1", "sen2")
        )
    )

    assert [r.request.required_votes for r in results] == [1, 2]
    assert [r.applied for r in results] == [True, False]
    assert store.mode is SystemMode.BOOTSTRAP
    assert sum(1 for m in store.members if m.level == 5) == 2


@pytest.mark.asyncio
async def test_racing_core_votes_keep_core_odd(
    services: GovernanceServices, store: GovernanceStoreStub
) -> None:
    core = [make_member(f"core{i}", 5) for i in range(4)]
    await add_members(store, *core, make_member("amy", 4), make_member("bo", 4))
    await put_mode(store, SystemMode.ACTIVE)
    requests = []
    for handle in ("amy", "bo"):
        proposal = await services.level_changes.propose(
            core[0], LevelOperation.PROMOTE, LevelChangeArgs(handle=handle, to_level=5)
        )
        await services.level_changes.vote(
            core[1], VoteArgs(request=str(proposal.request.id), vote=VoteDirection.FOR)
        )
        requests.append(proposal.request)

    results = await asyncio.gather(
        *(
            services.level_changes.vote(
                core[2], VoteArgs(request=str(r.id), vote=VoteDirection.FOR)
            )
            for r in requests
        )
    )

    assert [r.applied for r in results] == [True, False]
    assert results[1].outcome.blocked_reason is not None
    core_population = sum(1 for m in store.members if m.level == 5)
    assert core_population == 5
    assert len(store.history) == 1
