"""
Ticketeer - Database Ticket Operations Module
=============================================

Ticket rows: creation, lookup, staff thread link and closure.
"""

import time
from typing import Optional, List, TYPE_CHECKING

from src.core.logger import logger
from src.core.database.models import TicketRecord

if TYPE_CHECKING:
    from src.core.database.manager import DatabaseManager


class TicketsMixin:
    """Mixin for ticket database operations."""

    def create_ticket(
        self: "DatabaseManager",
        category_id: int,
        ticket_name: str,
        channel_id: int,
        user_id: int,
        user_username: str,
        user_display_name: str,
        opened_at: Optional[float] = None,
    ) -> int:
        """
        Create a new open ticket.

        Args:
            category_id: Owning category id.
            ticket_name: Channel name at creation.
            channel_id: Bound Discord channel id.
            user_id: Requester id.
            user_username: Requester username snapshot.
            user_display_name: Requester display name snapshot.
            opened_at: Opened timestamp, defaults to now.

        Returns:
            New ticket id.

        Raises:
            sqlite3.Error: If the row cannot be written (including a second
                open ticket on the same channel).
        """
        opened_at = opened_at if opened_at is not None else time.time()
        cursor = self.execute(
            """INSERT INTO tickets (
                category, ticket_name, channel_id, user_id,
                user_username, user_display_name, opened_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (category_id, ticket_name, channel_id, user_id,
             user_username, user_display_name, opened_at),
        )
        logger.tree("Ticket Row Created", [
            ("Ticket ID", str(cursor.lastrowid)),
            ("Category", str(category_id)),
            ("Channel", str(channel_id)),
            ("User", f"{user_username} ({user_id})"),
        ], emoji="🎫")
        return cursor.lastrowid

    def get_ticket(self: "DatabaseManager", ticket_id: int) -> Optional[TicketRecord]:
        """Get a ticket by its id."""
        row = self.fetchone("SELECT * FROM tickets WHERE id = ?", (ticket_id,))
        return dict(row) if row else None

    def get_open_ticket_by_channel(
        self: "DatabaseManager",
        channel_id: int,
    ) -> Optional[TicketRecord]:
        """Get the open ticket bound to a channel."""
        row = self.fetchone(
            "SELECT * FROM tickets WHERE channel_id = ? AND closed_at IS NULL",
            (channel_id,),
        )
        return dict(row) if row else None

    def get_latest_ticket_by_channel(
        self: "DatabaseManager",
        channel_id: int,
    ) -> Optional[TicketRecord]:
        """Get the most recent ticket (open or closed) bound to a channel."""
        row = self.fetchone(
            "SELECT * FROM tickets WHERE channel_id = ? ORDER BY id DESC LIMIT 1",
            (channel_id,),
        )
        return dict(row) if row else None

    def get_open_tickets(self: "DatabaseManager") -> List[TicketRecord]:
        """Get every open ticket, oldest first."""
        rows = self.fetchall(
            "SELECT * FROM tickets WHERE closed_at IS NULL ORDER BY id ASC"
        )
        return [dict(row) for row in rows]

    def count_tickets(self: "DatabaseManager") -> int:
        """Count all tickets ever created."""
        row = self.fetchone("SELECT COUNT(*) AS total FROM tickets")
        return row["total"] if row else 0

    def set_staff_thread(self: "DatabaseManager", ticket_id: int, thread_id: int) -> None:
        """Link a private staff thread to a ticket."""
        self.execute(
            "UPDATE tickets SET staff_thread_id = ? WHERE id = ?",
            (thread_id, ticket_id),
        )
        logger.debug("Staff Thread Linked", [
            ("Ticket ID", str(ticket_id)),
            ("Thread", str(thread_id)),
        ])

    def close_ticket(
        self: "DatabaseManager",
        ticket_id: int,
        author_id: int,
        display_name: str,
        avatar: Optional[str],
        content: str,
        closed_at: Optional[float] = None,
    ) -> bool:
        """
        Close a ticket and append its closure message atomically.

        DESIGN: Both writes share one transaction, so a ticket is never
        closed without its closure entry or the other way round. The
        UPDATE only matches an open ticket, which makes closing idempotent.

        Args:
            ticket_id: Ticket to close.
            author_id: Author of the closure message.
            display_name: Author display name snapshot.
            avatar: Author avatar snapshot.
            content: Closure message content (usually an embed marker).
            closed_at: Closure timestamp, defaults to now.

        Returns:
            True if the ticket was open and is now closed.

        Raises:
            sqlite3.Error: If the transaction fails.
        """
        closed_at = closed_at if closed_at is not None else time.time()

        with self.transaction() as tx:
            tx.execute(
                "UPDATE tickets SET closed_at = ? WHERE id = ? AND closed_at IS NULL",
                (closed_at, ticket_id),
            )
            if tx.rowcount == 0:
                return False

            tx.execute(
                """INSERT INTO ticket_messages
                   (ticket, author_id, display_name, avatar, content, sent_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (ticket_id, author_id, display_name, avatar, content, closed_at),
            )

        logger.tree("Ticket Row Closed", [
            ("Ticket ID", str(ticket_id)),
            ("Closed By", f"{display_name} ({author_id})"),
        ], emoji="🔒")
        return True
