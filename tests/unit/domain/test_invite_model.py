"""Unit tests for the Invite domain model."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from cocentrica.domain.models.invite import Invite, is_valid_handle


def _invite(expires_in: timedelta = timedelta(days=7), **overrides: object):
    fields: dict[str, object] = {
        "id": uuid4(),
        "token": "tok",
        "email": "new@cocentrica.test",
        "handle": "newbie",
        "name": "New Member",
        "inviter_id": uuid4(),
        "expires_at": datetime.now(timezone.utc) + expires_in,
    }
    fields.update(overrides)
    return Invite(**fields)  # type: ignore[arg-type]


class TestHandleFormat:
    """Tests for handle validation."""

    @pytest.mark.parametrize("handle", ["alice", "Bob_2", "c-d", "X"])
    def test_allowed(self, handle: str) -> None:
        assert is_valid_handle(handle)

    @pytest.mark.parametrize(
        "handle", ["", "has space", "at@sign", "dot.name", "ñandu"]
    )
    def test_rejected(self, handle: str) -> None:
        assert not is_valid_handle(handle)


class TestInvite:
    """Tests for invite activity."""

    def test_unused_unexpired_is_active(self) -> None:
        assert _invite().is_active_at(datetime.now(timezone.utc))

    def test_expired_is_inactive(self) -> None:
        invite = _invite(expires_in=timedelta(seconds=-1))
        assert not invite.is_active_at(datetime.now(timezone.utc))

    def test_used_is_inactive(self) -> None:
        assert not _invite(is_used=True).is_active_at(datetime.now(timezone.utc))

    def test_requires_timezone_aware_expiry(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            _invite(expires_at=datetime(2030, 1, 1))
