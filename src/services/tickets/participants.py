"""
Ticketeer - Ticket Participants
===============================

Staff adding and removing members on an open ticket.
"""

import sqlite3
from typing import TYPE_CHECKING

from src.core.logger import logger
from src.utils.async_utils import safe_async_operation

from .embeds import build_member_notice
from .models import MessagePayload, Requester
from .results import ErrorKind, TicketResult

if TYPE_CHECKING:
    from .service import TicketService


class ParticipantsMixin:
    """Mixin for ticket participant management."""

    async def add_participant(
        self: "TicketService",
        channel_id: int,
        member: Requester,
        actor: Requester,
    ) -> TicketResult:
        """
        Give a member access to a ticket.

        Returns:
            OK(ActiveTicket), or FAILED with CHANNEL_NOT_TICKET, NOT_AUTHORIZED,
            INVALID_PARTICIPANT, PROVISIONING_FAILED or PERSISTENCE_FAILED.
        """
        return await self._change_participant(channel_id, member, actor, added=True)

    async def remove_participant(
        self: "TicketService",
        channel_id: int,
        member: Requester,
        actor: Requester,
    ) -> TicketResult:
        """Revoke a member's access to a ticket. The requester cannot be removed."""
        return await self._change_participant(channel_id, member, actor, added=False)

    async def _change_participant(
        self: "TicketService",
        channel_id: int,
        member: Requester,
        actor: Requester,
        added: bool,
    ) -> TicketResult:
        ticket = self.registry.get(channel_id)
        if ticket is None:
            return TicketResult.failed(ErrorKind.CHANNEL_NOT_TICKET, f"channel {channel_id}")
        if not actor.is_staff:
            return TicketResult.failed(ErrorKind.NOT_AUTHORIZED, f"user {actor.id}")
        if member.id == ticket.requester.id or member.is_bot:
            return TicketResult.failed(ErrorKind.INVALID_PARTICIPANT, f"user {member.id}")

        action = "added to" if added else "removed from"
        try:
            await self.platform.set_member_access(
                channel_id,
                member.id,
                allowed=added,
                reason=f"{member.username} {action} ticket #{ticket.ticket_id} by {actor.username}",
            )
        except Exception as e:
            logger.error("Ticket Participant Update Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Member", f"{member.username} ({member.id})"),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.PROVISIONING_FAILED, str(e))

        try:
            if added:
                self.db.add_ticket_member(ticket.ticket_id, member.id, actor.id)
            else:
                self.db.remove_ticket_member(ticket.ticket_id, member.id, actor.id)
        except sqlite3.Error as e:
            logger.error("Ticket Participant Persistence Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Member", f"{member.username} ({member.id})"),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.PERSISTENCE_FAILED, str(e))

        await safe_async_operation(
            "Post Participant Notice",
            self.platform.send_message(channel_id, MessagePayload(
                embeds=(build_member_notice(member, actor, added),),
            )),
        )

        logger.tree("Ticket Member Added" if added else "Ticket Member Removed", [
            ("Ticket ID", str(ticket.ticket_id)),
            ("Member", f"{member.username} ({member.id})"),
            ("By", f"{actor.username} ({actor.id})"),
        ], emoji="👥")
        return TicketResult.ok(ticket)


__all__ = ["ParticipantsMixin"]
