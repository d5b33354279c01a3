"""
Ticketeer - Database Ticket Message Operations Module
=====================================================

Append-only message log that transcripts are rendered from.
"""

import time
from typing import Optional, List, TYPE_CHECKING

from src.core.database.models import TicketMessageRecord

if TYPE_CHECKING:
    from src.core.database.manager import DatabaseManager


class MessagesMixin:
    """Mixin for ticket message log operations."""

    def add_ticket_message(
        self: "DatabaseManager",
        ticket_id: int,
        author_id: int,
        display_name: str,
        avatar: Optional[str],
        content: Optional[str],
        sent_at: Optional[float] = None,
        message_id: Optional[int] = None,
    ) -> int:
        """
        Append a message to a ticket's log.

        Returns:
            New log entry id.
        """
        cursor = self.execute(
            """INSERT INTO ticket_messages
               (ticket, message_id, author_id, display_name, avatar, content, sent_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (ticket_id, message_id, author_id, display_name, avatar, content,
             sent_at if sent_at is not None else time.time()),
        )
        return cursor.lastrowid

    def update_ticket_message(
        self: "DatabaseManager",
        message_id: int,
        content: Optional[str],
        edited_at: Optional[float] = None,
    ) -> bool:
        """Apply an edit to a logged message. Returns False if it was never logged."""
        cursor = self.execute(
            "UPDATE ticket_messages SET content = ?, edited_at = ? WHERE message_id = ?",
            (content, edited_at if edited_at is not None else time.time(), message_id),
        )
        return cursor.rowcount > 0

    def get_ticket_messages(
        self: "DatabaseManager",
        ticket_id: int,
    ) -> List[TicketMessageRecord]:
        """Get a ticket's log in canonical (timestamp, id) order."""
        rows = self.fetchall(
            """SELECT * FROM ticket_messages WHERE ticket = ?
               ORDER BY sent_at ASC, id ASC""",
            (ticket_id,),
        )
        return [dict(row) for row in rows]
