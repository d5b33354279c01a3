"""
Ticketeer - Ticket Closure
==========================

Close workflow: authorization, optional reason form, the durable state
change, transcripts and deferred channel deletion.
"""

import sqlite3
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from src.core.constants import THREAD_FETCH_LIMIT
from src.core.logger import logger
from src.utils.async_utils import safe_async_operation

from .embeds import (
    build_archive_embed,
    build_closed_dm_embed,
    build_closure_embed,
    build_staff_evidence_embed,
)
from .forms import build_close_form, closure_reason
from .models import (
    ActiveTicket,
    ClosureReport,
    MessagePayload,
    Requester,
    SubmissionStatus,
    TicketState,
    TranscriptFile,
)
from .results import ErrorKind, TicketResult
from .scheduler import ScheduledJob
from .transcript import embed_marker, generate_html_transcript

if TYPE_CHECKING:
    from .service import TicketService


CLOSE_CANCELLED_MESSAGE = "Ticket closing cancelled."
CLOSE_CONFIRMED_MESSAGE = "Ticket closed. This channel will be deleted shortly."


class ClosureMixin:
    """Mixin for closing tickets."""

    def can_manage(self: "TicketService", ticket: ActiveTicket, member: Requester) -> bool:
        """Requester of the ticket, or staff."""
        return member.is_staff or member.id == ticket.requester.id

    # =========================================================================
    # Close Request
    # =========================================================================

    async def request_close(
        self: "TicketService",
        responder: Any,
        channel_id: int,
        closer: Requester,
        reason: Optional[str] = None,
        prompt_reason: bool = True,
    ) -> TicketResult:
        """
        Handle a close request from the button or /close.

        Args:
            responder: Interaction to answer.
            channel_id: Channel the request came from.
            closer: Member asking to close.
            reason: Reason given up front (skips the form).
            prompt_reason: Ask for a reason with a form when none was given.

        Returns:
            OK(ClosureReport), CANCELLED, TIMEOUT or FAILED.
        """
        ticket = self.registry.get(channel_id)
        if ticket is None or ticket.state is not TicketState.OPEN:
            return await self._reply_close(
                responder, TicketResult.failed(ErrorKind.CHANNEL_NOT_TICKET, f"channel {channel_id}")
            )

        if not self.can_manage(ticket, closer):
            logger.warning("Ticket Close Denied", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("User", f"{closer.username} ({closer.id})"),
            ])
            return await self._reply_close(
                responder, TicketResult.failed(ErrorKind.NOT_AUTHORIZED, f"user {closer.id}")
            )

        if reason is None and prompt_reason:
            form = build_close_form(channel_id, ticket.channel_name, closer.id)
            submission = await self.platform.prompt_form(responder, form, self.config.form_timeout)

            if submission.status is not SubmissionStatus.SUBMITTED:
                logger.info("Ticket Close Cancelled", [
                    ("Ticket ID", str(ticket.ticket_id)),
                    ("User", f"{closer.username} ({closer.id})"),
                    ("Status", submission.status.value),
                ])
                if submission.status is SubmissionStatus.TIMEOUT:
                    result = TicketResult.timeout("close form timed out")
                else:
                    result = TicketResult.cancelled("close form cancelled")
                await self.platform.respond(submission.responder, CLOSE_CANCELLED_MESSAGE)
                return result

            responder = submission.responder
            reason = closure_reason(submission.values)

        await self.platform.defer(responder)
        result = await self.close_ticket(channel_id, closer, reason)
        return await self._reply_close(responder, result)

    async def _reply_close(self: "TicketService", responder: Any, result: TicketResult) -> TicketResult:
        await self.platform.respond(responder, CLOSE_CONFIRMED_MESSAGE if result.is_ok else result.user_message)
        return result

    # =========================================================================
    # Confirmed Closure
    # =========================================================================

    async def close_ticket(
        self: "TicketService",
        channel_id: int,
        closer: Requester,
        reason: Optional[str] = None,
    ) -> TicketResult:
        """
        Close the open ticket bound to a channel.

        DESIGN:
            Success depends only on the database transaction that sets
            closed_at and appends the closure entry. Once that commits the
            ticket leaves the registry, and everything after (transcripts,
            DM, channel deletion) is best effort.

        Args:
            channel_id: Ticket channel.
            closer: Member closing the ticket.
            reason: Optional closure reason.

        Returns:
            OK(ClosureReport), or FAILED(CHANNEL_NOT_TICKET / PERSISTENCE_FAILED).
        """
        ticket = self.registry.get(channel_id)
        if ticket is None or ticket.state is not TicketState.OPEN:
            return TicketResult.failed(ErrorKind.CHANNEL_NOT_TICKET, f"channel {channel_id}")

        ticket.state = TicketState.CLOSING
        closure_embed = build_closure_embed(reason)

        try:
            closed = self.db.close_ticket(
                ticket.ticket_id,
                author_id=closer.id,
                display_name=closer.display_name,
                avatar=closer.avatar_url,
                content=embed_marker(closure_embed),
            )
        except sqlite3.Error as e:
            ticket.state = TicketState.OPEN
            logger.error("Ticket Closure Persistence Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.PERSISTENCE_FAILED, str(e))

        if not closed:
            # Row was already closed; drop the stale entry
            self.registry.unregister(channel_id)
            logger.warning("Ticket Already Closed", [("Ticket ID", str(ticket.ticket_id))])
            return TicketResult.failed(ErrorKind.CHANNEL_NOT_TICKET, "ticket row already closed")

        ticket.state = TicketState.CLOSED
        transcript = self._render_ticket_transcript(ticket)
        self.registry.unregister(channel_id)

        failed = await self._fan_out_closure(ticket, closer, reason, closure_embed, transcript)
        deletion = self._schedule_channel_deletion(ticket, closer, reason)

        logger.tree("Ticket Closed", [
            ("Ticket ID", str(ticket.ticket_id)),
            ("Channel", f"#{ticket.channel_name} ({ticket.channel_id})"),
            ("Closed By", f"{closer.username} ({closer.id})"),
            ("Reason", (reason or "None")[:100]),
            ("Transcript", "Generated" if transcript else "Unavailable"),
            ("Fan-out Failures", ", ".join(failed) or "None"),
        ], emoji="🔒")

        return TicketResult.ok(ClosureReport(
            ticket_id=ticket.ticket_id,
            transcript_generated=transcript is not None,
            failed_destinations=tuple(failed),
            deletion_job=deletion,
        ))

    # =========================================================================
    # Transcripts
    # =========================================================================

    def _render_ticket_transcript(self: "TicketService", ticket: ActiveTicket) -> Optional[TranscriptFile]:
        """Render the stored log. None (logged) if rendering fails."""
        try:
            record = self.db.get_ticket(ticket.ticket_id)
            html = generate_html_transcript(
                record,
                self.db.get_ticket_messages(ticket.ticket_id),
                category_name=ticket.category_name,
            )
        except Exception as e:
            logger.error("Transcript Generation Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return None
        return TranscriptFile(filename=f"ticket-{ticket.ticket_id}-transcript.html", content=html)

    async def _fan_out_closure(
        self: "TicketService",
        ticket: ActiveTicket,
        closer: Requester,
        reason: Optional[str],
        closure_embed: dict,
        transcript: Optional[TranscriptFile],
    ) -> List[str]:
        """Deliver closure notices and transcripts. Returns the destinations that failed."""
        steps: List[Tuple[str, Any]] = [
            ("Channel Notice", self._post_channel_notice(ticket, closure_embed)),
            ("Archive Channel", self._post_archive(ticket, closer, reason, transcript)),
            ("Staff Transcript", self._post_staff_transcript(ticket)),
            ("Requester DM", self._send_requester_dm(ticket, closer, reason, transcript)),
        ]

        failed = []
        for name, coro in steps:
            delivered = await safe_async_operation(f"{name} (Ticket #{ticket.ticket_id})", coro, default=False)
            if delivered is False:
                failed.append(name)

        if failed:
            logger.warning("Ticket Archival Fan-out Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Kind", ErrorKind.ARCHIVAL_FANOUT_FAILED.value),
                ("Destinations", ", ".join(failed)),
            ])
        return failed

    async def _post_channel_notice(self: "TicketService", ticket: ActiveTicket, closure_embed: dict) -> bool:
        await self.platform.send_message(ticket.channel_id, MessagePayload(embeds=(closure_embed,)))
        return True

    async def _post_archive(
        self: "TicketService",
        ticket: ActiveTicket,
        closer: Requester,
        reason: Optional[str],
        transcript: Optional[TranscriptFile],
    ) -> Optional[bool]:
        if not self.config.transcript_channel_id:
            return None
        await self.platform.send_message(self.config.transcript_channel_id, MessagePayload(
            embeds=(build_archive_embed(ticket, closer, reason),),
            files=(transcript,) if transcript else (),
        ))
        return True

    async def _post_staff_transcript(self: "TicketService", ticket: ActiveTicket) -> Optional[bool]:
        """Archive the staff thread when it holds more than its seed message."""
        if not ticket.staff_thread_id or not self.config.transcript_channel_id:
            return None

        messages = await self.platform.fetch_thread_messages(ticket.staff_thread_id, THREAD_FETCH_LIMIT)
        if len(messages) <= 1:
            return None

        html = generate_html_transcript(
            self.db.get_ticket(ticket.ticket_id),
            messages,
            category_name=ticket.category_name,
            staff_evidence=True,
        )
        await self.platform.send_message(self.config.transcript_channel_id, MessagePayload(
            embeds=(build_staff_evidence_embed(ticket, len(messages)),),
            files=(TranscriptFile(f"ticket-{ticket.ticket_id}-staff-evidence.html", html),),
        ))
        return True

    async def _send_requester_dm(
        self: "TicketService",
        ticket: ActiveTicket,
        closer: Requester,
        reason: Optional[str],
        transcript: Optional[TranscriptFile],
    ) -> Optional[bool]:
        if closer.id == ticket.requester.id:
            return None
        await self.platform.send_direct_message(ticket.requester.id, MessagePayload(
            embeds=(build_closed_dm_embed(ticket, closer, reason),),
            files=(transcript,) if transcript else (),
        ))
        return True

    # =========================================================================
    # Deletion
    # =========================================================================

    def _schedule_channel_deletion(
        self: "TicketService",
        ticket: ActiveTicket,
        closer: Requester,
        reason: Optional[str],
    ) -> ScheduledJob:
        audit_reason = f"Ticket closed by {closer.username}" + (f": {reason}" if reason else "")
        return self.scheduler.schedule(
            key=f"delete-channel:{ticket.channel_id}",
            action=lambda: self.platform.delete_channel(ticket.channel_id, reason=audit_reason[:512]),
            delay=self.config.channel_delete_delay,
            name=f"Delete Ticket #{ticket.ticket_id} Channel",
        )


__all__ = ["ClosureMixin", "CLOSE_CANCELLED_MESSAGE", "CLOSE_CONFIRMED_MESSAGE"]
