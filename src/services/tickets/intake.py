"""
Ticketeer - Ticket Intake
=========================

Opening workflow: category lookup, optional form and purchase
verification, then the opening sequence.
"""

import sqlite3
import time
from typing import TYPE_CHECKING, Any, List, Optional

from src.core.database.models import CategoryRecord
from src.core.logger import logger
from src.services.verification import VerificationResult, is_valid_token
from src.utils.async_utils import safe_async_operation

from .embeds import build_intro_embed, build_staff_thread_notice, format_purchase_info
from .forms import build_intake_form, collect_answers
from .models import (
    ActiveTicket,
    ChannelHandle,
    FormAnswer,
    MessagePayload,
    Requester,
    SubmissionStatus,
)
from .results import ErrorKind, TicketResult

if TYPE_CHECKING:
    from .service import TicketService


class IntakeMixin:
    """Mixin for opening tickets."""

    # =========================================================================
    # Entry Point
    # =========================================================================

    async def open_ticket(
        self: "TicketService",
        responder: Any,
        requester: Requester,
        category_id: int,
    ) -> TicketResult:
        """
        Open a ticket for a requester in a category.

        DESIGN:
            A category with no verification and no fields takes the fast
            path straight to provisioning. Otherwise the requester gets a
            form; a timeout, cancellation or failed verification ends the
            workflow before anything is created.

        Args:
            responder: Interaction to answer (None for headless callers).
            requester: Ticket owner.
            category_id: Chosen category id.

        Returns:
            OK(ActiveTicket), CANCELLED, TIMEOUT or FAILED.
        """
        try:
            category = self.db.get_category(category_id)
            fields = self.db.get_fields(category_id) if category else []
        except sqlite3.Error as e:
            logger.error("Ticket Category Lookup Failed", [
                ("User", f"{requester.username} ({requester.id})"),
                ("Category", str(category_id)),
                ("Error", str(e)[:100]),
            ])
            return await self._reply_intake(
                responder,
                TicketResult.failed(ErrorKind.PERSISTENCE_FAILED, str(e)),
            )

        if category is None:
            logger.warning("Ticket Category Not Found", [
                ("User", f"{requester.username} ({requester.id})"),
                ("Category", str(category_id)),
            ])
            return await self._reply_intake(
                responder,
                TicketResult.failed(ErrorKind.CATEGORY_NOT_FOUND, f"category {category_id}"),
            )

        form = build_intake_form(category, fields, requester.id)
        answers: List[FormAnswer] = []
        verification: Optional[VerificationResult] = None

        if form is None:
            await self.platform.defer(responder)
        else:
            submission = await self.platform.prompt_form(responder, form, self.config.form_timeout)

            if submission.status is SubmissionStatus.TIMEOUT:
                logger.info("Ticket Form Timed Out", [
                    ("User", f"{requester.username} ({requester.id})"),
                    ("Category", category["name"]),
                ])
                return await self._reply_intake(
                    submission.responder,
                    TicketResult.timeout(f"no submission within {self.config.form_timeout:.0f}s"),
                )
            if submission.status is SubmissionStatus.CANCELLED:
                logger.info("Ticket Form Cancelled", [
                    ("User", f"{requester.username} ({requester.id})"),
                    ("Category", category["name"]),
                ])
                return await self._reply_intake(submission.responder, TicketResult.cancelled("form cancelled"))

            responder = submission.responder
            await self.platform.defer(responder)
            answers = collect_answers(form, submission.values)

            if category.get("require_verification"):
                checked = await self._verify_purchase(requester, answers)
                if not checked.is_ok:
                    return await self._reply_intake(responder, checked)
                verification = checked.value

        result = await self._open_ticket_channel(category, requester, answers, verification)
        return await self._reply_intake(responder, result)

    async def _reply_intake(self: "TicketService", responder: Any, result: TicketResult) -> TicketResult:
        if result.is_ok:
            ticket: ActiveTicket = result.value
            content = f"Your ticket has been opened: {ticket.channel_url or f'<#{ticket.channel_id}>'}."
        else:
            content = result.user_message
        await self.platform.respond(responder, content)
        return result

    # =========================================================================
    # Verification
    # =========================================================================

    async def _verify_purchase(
        self: "TicketService",
        requester: Requester,
        answers: List[FormAnswer],
    ) -> TicketResult:
        """Look up the tagged verification answer. OK(VerificationResult) or VERIFICATION_FAILED."""
        token = next((answer.value for answer in answers if answer.is_verification), None)

        if not token or not is_valid_token(token):
            logger.info("Ticket Verification Rejected", [
                ("User", f"{requester.username} ({requester.id})"),
                ("Reason", "missing" if not token else "malformed"),
            ])
            return TicketResult.failed(ErrorKind.VERIFICATION_FAILED, "missing or malformed token")

        if self.verifier is None:
            logger.warning("Ticket Verification Unavailable", [("User", f"{requester.username} ({requester.id})")])
            return TicketResult.failed(ErrorKind.VERIFICATION_FAILED, "no verifier configured")

        try:
            verification = await self.verifier.verify_purchase(token)
        except Exception as e:
            logger.error("Ticket Verification Error", [
                ("User", f"{requester.username} ({requester.id})"),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.VERIFICATION_FAILED, str(e))

        if not verification.success:
            logger.info("Ticket Verification Rejected", [
                ("User", f"{requester.username} ({requester.id})"),
                ("Reason", verification.reason or "rejected"),
            ])
            return TicketResult.failed(ErrorKind.VERIFICATION_FAILED, verification.reason or "rejected")

        return TicketResult.ok(verification)

    # =========================================================================
    # Opening Sequence
    # =========================================================================

    async def _open_ticket_channel(
        self: "TicketService",
        category: CategoryRecord,
        requester: Requester,
        answers: List[FormAnswer],
        verification: Optional[VerificationResult],
    ) -> TicketResult:
        """Provision, persist, register, introduce, then add the staff thread."""
        provisioned = await self._provision_channel(category, requester)
        if not provisioned.is_ok:
            return provisioned
        channel: ChannelHandle = provisioned.value

        opened_at = time.time()
        try:
            ticket_id = self.db.create_ticket(
                category_id=category["id"],
                ticket_name=channel.name,
                channel_id=channel.id,
                user_id=requester.id,
                user_username=requester.username,
                user_display_name=requester.display_name,
                opened_at=opened_at,
            )
        except sqlite3.Error as e:
            logger.error("Ticket Persistence Failed", [
                ("Channel", f"#{channel.name} ({channel.id})"),
                ("User", f"{requester.username} ({requester.id})"),
                ("Error", str(e)[:100]),
            ])
            await self._discard_channel(channel, "Ticket could not be saved")
            return TicketResult.failed(ErrorKind.PERSISTENCE_FAILED, str(e))

        ticket = ActiveTicket(
            ticket_id=ticket_id,
            channel_id=channel.id,
            channel_name=channel.name,
            category_id=category["id"],
            category_name=category["name"],
            requester=requester,
            opened_at=opened_at,
            channel_url=channel.url,
        )
        self.registry.register(channel.id, ticket)

        purchase_info = None
        if verification is not None:
            token = next(answer.value for answer in answers if answer.is_verification)
            purchase_info = format_purchase_info(token, verification.status, verification.packages)

        await safe_async_operation(
            "Post Ticket Intro",
            self.platform.send_message(channel.id, MessagePayload(
                content=requester.mention,
                embeds=(build_intro_embed(category["name"], requester, answers, purchase_info),),
                close_button=True,
            )),
            log_level="error",
        )

        if self.config.staff_role_ids:
            await self._create_staff_thread(ticket)

        logger.tree("Ticket Opened", [
            ("Ticket ID", str(ticket_id)),
            ("Category", category["name"]),
            ("Channel", f"#{channel.name} ({channel.id})"),
            ("User", f"{requester.username} ({requester.id})"),
            ("Answers", str(len(answers))),
            ("Verified", "Yes" if verification else "No"),
        ], emoji="🎫")

        return TicketResult.ok(ticket)

    async def _create_staff_thread(self: "TicketService", ticket: ActiveTicket) -> None:
        """Create and link the private staff thread. Failures are logged only."""
        try:
            thread = await self.platform.create_private_thread(
                ticket.channel_id,
                f"Evidence-{ticket.ticket_id}",
                reason=f"Staff thread for ticket #{ticket.ticket_id}",
            )
            self.db.set_staff_thread(ticket.ticket_id, thread.id)
            ticket.staff_thread_id = thread.id
            await self.platform.send_message(thread.id, MessagePayload(
                content=build_staff_thread_notice(sorted(self.config.staff_role_ids)),
            ))
        except Exception as e:
            logger.warning("Staff Thread Creation Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return

        logger.debug("Staff Thread Created", [
            ("Ticket ID", str(ticket.ticket_id)),
            ("Thread", str(ticket.staff_thread_id)),
        ])

    async def _discard_channel(self: "TicketService", channel: ChannelHandle, reason: str) -> None:
        """Best-effort removal of a channel that has no ticket row."""
        try:
            await self.platform.delete_channel(channel.id, reason=reason)
            logger.info("Orphan Ticket Channel Removed", [("Channel", f"#{channel.name} ({channel.id})")])
        except Exception as e:
            logger.error("Orphan Ticket Channel Left Behind", [
                ("Channel", f"#{channel.name} ({channel.id})"),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])


__all__ = ["IntakeMixin"]
