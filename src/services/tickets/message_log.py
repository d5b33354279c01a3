"""
Ticketeer - Ticket Message Log
==============================

Records messages and edits from registered ticket channels, and exports
transcripts on demand.
"""

import sqlite3
from typing import TYPE_CHECKING, Any, Dict, Optional

from src.core.logger import logger
from src.utils.async_utils import safe_async_operation

from .embeds import build_export_embed
from .models import MessagePayload, Requester, TranscriptFile
from .results import ErrorKind, TicketResult
from .transcript import generate_html_transcript

if TYPE_CHECKING:
    from .service import TicketService


class MessageLogMixin:
    """Mixin for message logging and transcript export."""

    # =========================================================================
    # Logging
    # =========================================================================

    def log_message(self: "TicketService", channel_id: int, record: Dict[str, Any]) -> bool:
        """
        Append a message to the log of the channel's ticket.

        Args:
            channel_id: Channel the message was sent in.
            record: Message columns (message_id, author_id, display_name,
                avatar, content, sent_at).

        Returns:
            True if the channel is a ticket and the message was stored.
        """
        ticket = self.registry.get(channel_id)
        if ticket is None:
            return False

        try:
            self.db.add_ticket_message(
                ticket.ticket_id,
                author_id=record["author_id"],
                display_name=record["display_name"],
                avatar=record.get("avatar"),
                content=record.get("content"),
                sent_at=record.get("sent_at"),
                message_id=record.get("message_id"),
            )
        except sqlite3.Error as e:
            logger.error("Ticket Message Log Failed", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Message", str(record.get("message_id"))),
                ("Error", str(e)[:100]),
            ])
            return False
        return True

    def log_message_edit(
        self: "TicketService",
        channel_id: int,
        message_id: int,
        content: Optional[str],
        edited_at: Optional[float] = None,
    ) -> bool:
        """Apply an edit to a logged message. False if the channel or message is unknown."""
        if channel_id not in self.registry:
            return False
        try:
            return self.db.update_ticket_message(message_id, content, edited_at)
        except sqlite3.Error as e:
            logger.error("Ticket Message Edit Failed", [
                ("Channel", str(channel_id)),
                ("Message", str(message_id)),
                ("Error", str(e)[:100]),
            ])
            return False

    # =========================================================================
    # Export
    # =========================================================================

    async def export_transcript(
        self: "TicketService",
        channel_id: int,
        exporter: Requester,
    ) -> TicketResult:
        """
        Render the transcript of the channel's ticket, open or closed.

        The file is also posted to the transcript channel when one is
        configured.

        Returns:
            OK(TranscriptFile), or FAILED(CHANNEL_NOT_TICKET / NOT_AUTHORIZED /
            TRANSCRIPT_GENERATION_FAILED).
        """
        if not exporter.is_staff:
            return TicketResult.failed(ErrorKind.NOT_AUTHORIZED, f"user {exporter.id}")

        ticket = self.registry.get(channel_id)
        record = self.db.get_ticket(ticket.ticket_id) if ticket else self.db.get_latest_ticket_by_channel(channel_id)
        if record is None:
            return TicketResult.failed(ErrorKind.CHANNEL_NOT_TICKET, f"channel {channel_id}")

        category = self.db.get_category(record["category"])
        category_name = category["name"] if category else "Unknown"

        try:
            html = generate_html_transcript(
                record,
                self.db.get_ticket_messages(record["id"]),
                category_name=category_name,
            )
        except Exception as e:
            logger.error("Transcript Export Failed", [
                ("Ticket ID", str(record["id"])),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.TRANSCRIPT_GENERATION_FAILED, str(e))

        transcript = TranscriptFile(filename=f"ticket-{record['id']}-transcript.html", content=html)

        if self.config.transcript_channel_id:
            await safe_async_operation(
                "Post Exported Transcript",
                self.platform.send_message(self.config.transcript_channel_id, MessagePayload(
                    embeds=(build_export_embed(record["id"], category_name, record["ticket_name"], exporter),),
                    files=(transcript,),
                )),
            )

        logger.tree("Transcript Exported", [
            ("Ticket ID", str(record["id"])),
            ("By", f"{exporter.username} ({exporter.id})"),
            ("Size", f"{len(html.encode('utf-8')) / 1024:.1f} KB"),
        ], emoji="📄")
        return TicketResult.ok(transcript)


__all__ = ["MessageLogMixin"]
