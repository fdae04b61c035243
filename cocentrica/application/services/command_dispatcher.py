"""Command facade.

Maps a ParsedCommand to its handler and renders the result as the plain-text
reply sent back to the member. Every GovernanceError becomes an
"Error: <message>" reply; anything else propagates to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

from structlog import get_logger

from cocentrica.application.dtos.commands import (
    CommandType,
    InviteArgs,
    LevelChangeArgs,
    ParsedCommand,
    VoteArgs,
)
from cocentrica.application.services.level_change_executor import ApplicationStatus
from cocentrica.domain.errors import GovernanceError
from cocentrica.domain.models.level_change import LevelOperation

if TYPE_CHECKING:
    from cocentrica.application.services.level_change_service import (
        LevelChangeService,
    )
    from cocentrica.application.services.membership_service import (
        MembershipService,
    )
    from cocentrica.domain.models.member import Member
    from cocentrica.infrastructure.monitoring.governance_metrics import (
        GovernanceMetrics,
    )

logger = get_logger(__name__)

HELP_TEXT = (
    "Unknown command. Available commands: ME, LIST, INVITE, PROMOTE, DEMOTE, VOTE"
)
NO_USERS_TEXT = "No users found."

Handler = Callable[["Member", ParsedCommand], Awaitable[str]]


def render_error(error: GovernanceError) -> str:
    """Render a governance error as a reply."""
    return f"Error: {error.user_message}"


class CommandDispatcher:
    """Dispatches member commands to the governance services."""

    def __init__(
        self,
        level_changes: LevelChangeService,
        membership: MembershipService,
        metrics: GovernanceMetrics | None = None,
    ) -> None:
        self._level_changes = level_changes
        self._membership = membership
        self._metrics = metrics
        self._handlers: dict[CommandType, Handler] = {
            CommandType.ME: self.handle_me,
            CommandType.LIST: self.handle_list,
            CommandType.INVITE: self.handle_invite,
            CommandType.PROMOTE: self.handle_promote,
            CommandType.DEMOTE: self.handle_demote,
            CommandType.VOTE: self.handle_vote,
        }

    async def dispatch(self, sender: Member, command: ParsedCommand) -> str:
        """Run a command for ``sender`` and return the reply text.

        Args:
            sender: The resolved, active member who sent the command.
            command: Operation and arguments from the parser.

        Returns:
            Reply text. Governance failures are rendered, not raised.
        """
        if self._metrics is not None:
            self._metrics.record_command(command.command_type.value)

        handler = self._handlers.get(command.command_type)
        if handler is None:
            return HELP_TEXT

        try:
            return await handler(sender, command)
        except GovernanceError as exc:
            logger.info(
                "command_rejected",
                command=command.command_type.value,
                sender=sender.handle,
                error=type(exc).__name__,
            )
            return render_error(exc)

    async def handle_me(self, sender: Member, command: ParsedCommand) -> str:
        profile = await self._membership.profile(sender)
        member = profile.member
        lines = [
            "Your Information:",
            f"Handle: @{member.handle}",
            f"Name: {member.name}",
            f"Level: {member.level}",
        ]
        if member.invited_by:
            lines.append(f"Invited by: @{member.invited_by}")
        lines.append(f"Invitees: {profile.used_invites}")
        lines.append("")
        lines.append(f"Visible users: {profile.visible_count}")
        return "\n".join(lines)

    async def handle_list(self, sender: Member, command: ParsedCommand) -> str:
        members = await self._membership.listing(sender)
        if not members:
            return NO_USERS_TEXT

        lines = [f"Users ({len(members)}):", ""]
        for m in members:
            line = f"@{m.handle} - {m.name} (Level {m.level})"
            if m.email:
                line += f" - {m.email}"
            lines.append(line)
        return "\n".join(lines) + "\n"

    async def handle_invite(self, sender: Member, command: ParsedCommand) -> str:
        args = InviteArgs.from_args(command.args)
        await self._membership.invite(sender, args)
        return f"Invite sent to {args.email} for @{args.handle}."

    async def handle_promote(self, sender: Member, command: ParsedCommand) -> str:
        return await self._level_change(sender, command, LevelOperation.PROMOTE)

    async def handle_demote(self, sender: Member, command: ParsedCommand) -> str:
        return await self._level_change(sender, command, LevelOperation.DEMOTE)

    async def handle_vote(self, sender: Member, command: ParsedCommand) -> str:
        args = VoteArgs.from_args(command.args)
        result = await self._level_changes.vote(sender, args)
        request_id = result.request.id

        if result.applied:
            return f"Vote recorded. Request #{request_id} approved and applied."
        if result.outcome.status is ApplicationStatus.ALREADY_RESOLVED:
            return f"Vote recorded. Request #{request_id} is already approved."

        tally = f"{result.cast.for_votes}/{result.request.required_votes} votes."
        if result.outcome.blocked_reason:
            tally += f" Not applied: {result.outcome.blocked_reason}"
        if result.cast.updated:
            return f"Vote updated for request #{request_id}. {tally}"
        return f"Vote recorded for request #{request_id}. {tally}"

    async def _level_change(
        self, sender: Member, command: ParsedCommand, operation: LevelOperation
    ) -> str:
        args = LevelChangeArgs.from_args(command.args)
        result = await self._level_changes.propose(sender, operation, args)
        noun = operation.noun
        request = result.request

        if result.applied:
            return (
                f"{noun} request #{request.id} created and approved. "
                f"@{result.target.handle} is now Level {request.to_level}."
            )
        return (
            f"{noun} request #{request.id} created. "
            f"Requires {request.required_votes} votes "
            f"(currently {result.outcome.for_votes})."
        )


# The six member operations behind one entry point
CommandFacade = CommandDispatcher
