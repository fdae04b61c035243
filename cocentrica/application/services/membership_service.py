"""Membership service.

Read-side commands (ME, LIST) and invitations (INVITE).

Visibility Rules:
- A member sees only active members at or below their own level
- Counts are computed over the visible set; higher levels are never revealed
- Email addresses are shown only to Core viewers

Invite Rules:
- Handle must match ``^[a-zA-Z0-9_-]+$``
- Handle and email must not belong to an existing member
- At most one unused, unexpired invite per email
- The invite is committed before it is delivered; a delivery failure is
  reported to the inviter and the invite remains
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from cocentrica.application.services.base import LoggingMixin
from cocentrica.config.governance_config import GovernanceConfig
from cocentrica.domain.errors import (
    ActiveInviteExistsError,
    EmailRegisteredError,
    HandleTakenError,
    InvalidHandleError,
    NotificationDeliveryError,
)
from cocentrica.domain.models.invite import Invite, is_valid_handle
from cocentrica.domain.models.member import CORE_LEVEL, Member

if TYPE_CHECKING:
    from cocentrica.application.dtos.commands import InviteArgs
    from cocentrica.application.ports.governance_store import GovernanceStoreProtocol
    from cocentrica.application.ports.invite_issuer import InviteIssuerProtocol
    from cocentrica.application.ports.notifier import NotifierProtocol
    from cocentrica.application.ports.visibility import VisibilityProtocol

INVITE_SUBJECT = "Invitation to Cocéntrica"


@dataclass(frozen=True)
class MemberProfile:
    """Data shown by the ME command.

    Attributes:
        member: The caller.
        used_invites: Invites created by the caller that have been redeemed.
        visible_count: Members visible at the caller's level.
    """

    member: Member
    used_invites: int
    visible_count: int


@dataclass(frozen=True)
class ListedMember:
    """One row of the LIST reply. ``email`` is set only for Core viewers."""

    handle: str
    name: str
    level: int
    email: Optional[str] = None


class MembershipService(LoggingMixin):
    """Profile, listing and invitation operations."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        visibility: VisibilityProtocol,
        notifier: NotifierProtocol,
        invite_issuer: InviteIssuerProtocol,
        config: GovernanceConfig,
    ) -> None:
        self._store = store
        self._visibility = visibility
        self._notifier = notifier
        self._invite_issuer = invite_issuer
        self._config = config
        self._init_logger(component="membership")

    async def profile(self, member: Member) -> MemberProfile:
        """Build the caller's profile."""
        async with self._store.transaction() as tx:
            used_invites = await tx.count_used_invites(member.id)
        visible_count = await self._visibility.visible_count(member.level)
        return MemberProfile(
            member=member,
            used_invites=used_invites,
            visible_count=visible_count,
        )

    async def listing(self, viewer: Member) -> list[ListedMember]:
        """List the members visible to ``viewer``, ordered by handle.

        At most ``listing_limit`` members are returned.
        """
        members = await self._visibility.visible_members(
            viewer.level, self._config.listing_limit
        )
        show_email = viewer.level == CORE_LEVEL
        return [
            ListedMember(
                handle=m.handle,
                name=m.name,
                level=m.level,
                email=m.email if show_email else None,
            )
            for m in members
            if m.is_active and m.level <= viewer.level
        ]

    async def invite(self, inviter: Member, args: InviteArgs) -> Invite:
        """Create and deliver an invitation.

        Args:
            inviter: Member issuing the invite.
            args: Validated email, handle and name.

        Returns:
            The committed invite.

        Raises:
            InvalidHandleError: If the handle has disallowed characters.
            HandleTakenError: If a member already has the handle.
            EmailRegisteredError: If a member already has the email.
            ActiveInviteExistsError: If an active invite exists for the email.
            NotificationDeliveryError: If the invite was stored but not sent.
        """
        log = self._log_operation(
            "invite", inviter=inviter.handle, handle=args.handle
        )
        if not is_valid_handle(args.handle):
            raise InvalidHandleError(args.handle)

        now = datetime.now(timezone.utc)
        async with self._store.transaction() as tx:
            if await tx.get_member_by_handle(args.handle) is not None:
                raise HandleTakenError(args.handle)
            if await tx.get_member_by_email(args.email) is not None:
                raise EmailRegisteredError(args.email)
            if await tx.find_active_invite(args.email, now) is not None:
                raise ActiveInviteExistsError(args.email)

            invite = Invite(
                id=uuid4(),
                token=self._invite_issuer.issue_token(),
                email=args.email,
                handle=args.handle,
                name=args.name,
                inviter_id=inviter.id,
                expires_at=now + timedelta(days=self._config.invite_ttl_days),
                created_at=now,
            )
            await tx.create_invite(invite)

        log.info("invite_created", invite_id=str(invite.id))

        body = (
            f"You have been invited to join Cocéntrica by @{inviter.handle}.\n\n"
            "To accept this invitation, visit:\n"
            f"{self._invite_issuer.invite_link(invite.token)}\n\n"
            f"This link will expire in {self._config.invite_ttl_days} days."
        )
        try:
            # System messages are delivered with Core visibility
            await self._notifier.send(args.email, INVITE_SUBJECT, body, CORE_LEVEL)
        except NotificationDeliveryError:
            log.warning("invite_delivery_failed", invite_id=str(invite.id))
            raise

        log.info("invite_sent", invite_id=str(invite.id))
        return invite
