"""
Ticketeer - Database Ticket Member Operations Module
====================================================

Participants added to a ticket after creation.
"""

import time
from typing import List, TYPE_CHECKING

from src.core.logger import logger
from src.core.database.models import TicketMemberRecord

if TYPE_CHECKING:
    from src.core.database.manager import DatabaseManager


class MembersMixin:
    """Mixin for ticket participant operations."""

    def _upsert_ticket_member(
        self: "DatabaseManager",
        ticket_id: int,
        user_id: int,
        actor_id: int,
        removed: bool,
    ) -> None:
        """Insert or update a participant row, recording the acting staff member."""
        self.execute(
            """INSERT INTO ticket_members (ticket, user_id, added_by, added_at, removed)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(ticket, user_id) DO UPDATE SET
                   added_by = excluded.added_by,
                   added_at = excluded.added_at,
                   removed = excluded.removed""",
            (ticket_id, user_id, actor_id, time.time(), int(removed)),
        )

    def add_ticket_member(
        self: "DatabaseManager",
        ticket_id: int,
        user_id: int,
        added_by: int,
    ) -> None:
        """Add (or re-add) a participant to a ticket."""
        self._upsert_ticket_member(ticket_id, user_id, added_by, removed=False)
        logger.tree("Ticket Member Added", [
            ("Ticket ID", str(ticket_id)),
            ("User", str(user_id)),
            ("Added By", str(added_by)),
        ], emoji="➕")

    def remove_ticket_member(
        self: "DatabaseManager",
        ticket_id: int,
        user_id: int,
        removed_by: int,
    ) -> None:
        """Flag a participant as removed, keeping the row for audit."""
        self._upsert_ticket_member(ticket_id, user_id, removed_by, removed=True)
        logger.tree("Ticket Member Removed", [
            ("Ticket ID", str(ticket_id)),
            ("User", str(user_id)),
            ("Removed By", str(removed_by)),
        ], emoji="➖")

    def get_ticket_members(
        self: "DatabaseManager",
        ticket_id: int,
        include_removed: bool = False,
    ) -> List[TicketMemberRecord]:
        """Get a ticket's participants."""
        query = "SELECT * FROM ticket_members WHERE ticket = ?"
        if not include_removed:
            query += " AND removed = 0"
        rows = self.fetchall(query + " ORDER BY added_at ASC", (ticket_id,))
        return [dict(row) for row in rows]
