"""Seed the first Core member.

Creates one active level-5 member and writes the BOOTSTRAP mode record.
Idempotent: if a member with the same email or handle exists, nothing is
written.

Environment Variables:
- SEED_EMAIL: Email of the first Core member
- SEED_HANDLE: Handle of the first Core member
- SEED_NAME: Display name of the first Core member

Usage:
    python -m cocentrica.bootstrap.seed
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from uuid import uuid4

from dotenv import load_dotenv
from structlog import get_logger

from cocentrica.application.ports.governance_store import GovernanceStoreProtocol
from cocentrica.domain.errors import InvalidHandleError
from cocentrica.domain.models.invite import is_valid_handle
from cocentrica.domain.models.member import CORE_LEVEL, Member
from cocentrica.domain.models.system_mode import SystemMode

logger = get_logger()

SEED_UPDATED_BY = "seed"


@dataclass(frozen=True)
class SeedResult:
    """Outcome of a seed run.

    Attributes:
        member: The Core member, newly created or pre-existing.
        created: False if the member already existed.
    """

    member: Member
    created: bool


async def seed_first_core_member(
    store: GovernanceStoreProtocol,
    email: str,
    handle: str,
    name: str,
) -> SeedResult:
    """Create the first Core member and set the mode to BOOTSTRAP.

    Args:
        store: Governance store to seed.
        email: Member email.
        handle: Member handle (``[a-zA-Z0-9_-]+``).
        name: Display name.

    Returns:
        SeedResult; ``created`` is False when a member already existed.

    Raises:
        InvalidHandleError: If the handle has disallowed characters.
    """
    if not is_valid_handle(handle):
        raise InvalidHandleError(handle)

    log = logger.bind(handle=handle)
    async with store.transaction() as tx:
        existing = await tx.get_member_by_email(email)
        if existing is None:
            existing = await tx.get_member_by_handle(handle)
        if existing is not None:
            log.info("first_core_member_already_exists")
            return SeedResult(member=existing, created=False)

        member = Member(
            id=uuid4(),
            handle=handle,
            email=email,
            name=name,
            level=CORE_LEVEL,
        )
        await tx.add_member(member)
        # ACTIVE is never written back to BOOTSTRAP
        if (await tx.get_mode()).mode is SystemMode.BOOTSTRAP:
            await tx.set_mode(SystemMode.BOOTSTRAP, SEED_UPDATED_BY)

    log.info("first_core_member_created", member_id=str(member.id))
    return SeedResult(member=member, created=True)


def _require_env(key: str) -> str:
    value = os.environ.get(key)
    if not value:
        raise ValueError(
            "Missing required environment variables:\n"
            "SEED_EMAIL, SEED_HANDLE, SEED_NAME"
        )
    return value


async def main() -> None:
    """Seed the configured database from SEED_* variables."""
    from cocentrica.bootstrap.database import (
        close_database_engine,
        get_session_factory,
    )
    from cocentrica.bootstrap.logging import configure_structlog
    from cocentrica.infrastructure.adapters.persistence import (
        PostgresGovernanceStore,
    )

    load_dotenv()
    configure_structlog()
    email = _require_env("SEED_EMAIL")
    handle = _require_env("SEED_HANDLE")
    name = _require_env("SEED_NAME")

    store = PostgresGovernanceStore(get_session_factory())
    try:
        await seed_first_core_member(store, email=email, handle=handle, name=name)
    finally:
        await close_database_engine()


if __name__ == "__main__":
    asyncio.run(main())
