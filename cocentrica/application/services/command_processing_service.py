"""Command processing service.

Entry point for one inbound command: resolves the sender, dispatches the
command and hands the reply to the notifier.

Processing Rules:
- Unknown or inactive senders get the unauthorized notice and nothing runs
- Unknown commands get an error notice listing the available commands
- Replies go out with subject "Re: <original subject>"
- Unexpected failures are logged and reported to the sender as an error
  notice; they never reach the ingestion layer
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cocentrica.application.dtos.commands import CommandType
from cocentrica.application.services.base import LoggingMixin
from cocentrica.application.services.command_dispatcher import HELP_TEXT
from cocentrica.domain.errors import NotificationDeliveryError
from cocentrica.domain.models.member import CORE_LEVEL
from cocentrica.infrastructure.observability.correlation import (
    generate_correlation_id,
    set_correlation_id,
)

if TYPE_CHECKING:
    from cocentrica.application.dtos.commands import ParsedCommand
    from cocentrica.application.ports.governance_store import GovernanceStoreProtocol
    from cocentrica.application.ports.notifier import NotifierProtocol
    from cocentrica.application.services.command_dispatcher import (
        CommandDispatcher,
    )

UNAUTHORIZED_SUBJECT = "Not authorized"
UNAUTHORIZED_TEXT = (
    "You are not authorized to use this system.\n\n"
    "If you believe this is an error, please contact support."
)
ERROR_SUBJECT = "Error processing request"
UNEXPECTED_ERROR_TEXT = "An unexpected error occurred"
DEFAULT_REPLY_SUBJECT = "Command Response"


def error_notice(message: str) -> str:
    """Body of the error notice sent when a command could not be processed."""
    return (
        "An error occurred while processing your request:\n\n"
        f"{message}\n\n"
        "If you believe this is an error, please contact support."
    )


class CommandProcessingService(LoggingMixin):
    """Resolves senders and delivers command replies."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        dispatcher: CommandDispatcher,
        notifier: NotifierProtocol,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._init_logger(component="commands")

    async def process(
        self,
        sender_email: str,
        command: ParsedCommand,
        subject: str = "",
    ) -> None:
        """Process one command from ``sender_email``.

        Args:
            sender_email: Address the command came from.
            command: Operation and arguments from the parser.
            subject: Subject of the inbound message, echoed in the reply.
        """
        set_correlation_id(generate_correlation_id())
        log = self._log_operation(
            "process_command", command=command.command_type.value
        )

        async with self._store.transaction() as tx:
            sender = await tx.get_member_by_email(sender_email)

        if sender is None or not sender.is_active:
            # Do not reveal whether the address is known
            log.info("command_from_unauthorized_sender")
            try:
                await self._notifier.send(
                    sender_email, UNAUTHORIZED_SUBJECT, UNAUTHORIZED_TEXT, CORE_LEVEL
                )
            except NotificationDeliveryError:
                log.warning("unauthorized_notice_delivery_failed")
            return

        log = log.bind(sender=sender.handle)

        if command.command_type is CommandType.UNKNOWN:
            log.info("unknown_command")
            await self._notifier.send(
                sender.email, ERROR_SUBJECT, error_notice(HELP_TEXT), sender.level
            )
            return

        try:
            reply = await self._dispatcher.dispatch(sender, command)
        except Exception:
            log.exception("command_failed")
            await self._notifier.send(
                sender.email,
                ERROR_SUBJECT,
                error_notice(UNEXPECTED_ERROR_TEXT),
                sender.level,
            )
            return

        await self._notifier.send(
            sender.email,
            f"Re: {subject or DEFAULT_REPLY_SUBJECT}",
            reply,
            sender.level,
        )
        log.info("command_processed")
