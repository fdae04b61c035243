"""Command DTOs for the member command surface.

The external parser produces a ParsedCommand: the operation selected by the
first token and the ``key: value`` pairs from the remaining lines. The
Pydantic argument models below validate those pairs for each operation and
translate failures into governance validation errors.

Command Surface:
- ME, LIST: no arguments
- INVITE: email, handle, name
- PROMOTE / DEMOTE: user (or handle), to, optional reason
- VOTE: request, vote (FOR | AGAINST), optional comment
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cocentrica.domain.errors import (
    InvalidLevelError,
    InvalidVoteDirectionError,
    MissingFieldsError,
)
from cocentrica.domain.models.level_change import VoteDirection
from cocentrica.domain.models.member import MAX_LEVEL, MIN_LEVEL

INVITE_USAGE = "invite: email@example.com\nhandle: newuser\nname: New User"
LEVEL_CHANGE_USAGE = "user: @handle\nto: <level>\nreason: ..."
VOTE_USAGE = "request: <id>\nvote: FOR | AGAINST\ncomment: ..."


class CommandType(Enum):
    """Operations selectable by the first token of a command."""

    ME = "ME"
    LIST = "LIST"
    INVITE = "INVITE"
    PROMOTE = "PROMOTE"
    DEMOTE = "DEMOTE"
    VOTE = "VOTE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_token(cls, token: str) -> CommandType:
        """Map a command token to a CommandType, UNKNOWN if unrecognized."""
        try:
            return cls(token.strip().upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ParsedCommand:
    """A command as produced by the external parser.

    Attributes:
        command_type: Selected operation.
        args: Lower-cased keys mapped to stripped values.
    """

    command_type: CommandType
    args: dict[str, str] = field(default_factory=dict)

    @classmethod
    def of(cls, token: str, **args: str) -> ParsedCommand:
        """Build a command from a token and keyword arguments."""
        return cls(command_type=CommandType.from_token(token), args=dict(args))


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class InviteArgs(BaseModel):
    """Arguments of an INVITE command."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    email: str = Field(min_length=1)
    handle: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @classmethod
    def from_args(cls, args: dict[str, str]) -> InviteArgs:
        """Validate INVITE arguments.

        Raises:
            MissingFieldsError: If email, handle or name is missing or blank.
        """
        email = _blank_to_none(args.get("email"))
        handle = _blank_to_none(args.get("handle"))
        name = _blank_to_none(args.get("name"))
        if not email or not handle or not name:
            raise MissingFieldsError(INVITE_USAGE)
        return cls(email=email, handle=handle, name=name)


class LevelChangeArgs(BaseModel):
    """Arguments of a PROMOTE or DEMOTE command."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    handle: str = Field(min_length=1)
    to_level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)
    reason: Optional[str] = None

    @classmethod
    def from_args(cls, args: dict[str, str]) -> LevelChangeArgs:
        """Validate PROMOTE / DEMOTE arguments.

        The target may be given as ``user`` or ``handle``; a leading "@" is
        stripped.

        Raises:
            MissingFieldsError: If the target or destination level is missing.
            InvalidLevelError: If the destination is not an integer in [1, 5].
        """
        raw_handle = _blank_to_none(args.get("user")) or _blank_to_none(
            args.get("handle")
        )
        raw_level = _blank_to_none(args.get("to"))
        if raw_handle is None or raw_level is None:
            raise MissingFieldsError(LEVEL_CHANGE_USAGE)
        handle = raw_handle.lstrip("@")
        if not handle:
            raise MissingFieldsError(LEVEL_CHANGE_USAGE)
        try:
            return cls(
                handle=handle,
                to_level=int(raw_level),
                reason=_blank_to_none(args.get("reason")),
            )
        except (ValueError, ValidationError) as exc:
            raise InvalidLevelError(raw_level) from exc


class VoteArgs(BaseModel):
    """Arguments of a VOTE command."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    request: str = Field(min_length=1)
    vote: VoteDirection
    comment: Optional[str] = None

    @field_validator("vote", mode="before")
    @classmethod
    def _upper_vote(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @classmethod
    def from_args(cls, args: dict[str, str]) -> VoteArgs:
        """Validate VOTE arguments.

        Raises:
            MissingFieldsError: If the request id or vote is missing.
            InvalidVoteDirectionError: If the vote is not FOR or AGAINST.
        """
        request = _blank_to_none(args.get("request"))
        raw_vote = _blank_to_none(args.get("vote"))
        if request is None or raw_vote is None or not request.lstrip("#"):
            raise MissingFieldsError(VOTE_USAGE)
        try:
            return cls(
                request=request.lstrip("#"),
                vote=raw_vote,
                comment=_blank_to_none(args.get("comment")),
            )
        except ValidationError as exc:
            raise InvalidVoteDirectionError(raw_vote) from exc
