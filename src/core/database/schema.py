"""
Ticketeer - Database Schema
===========================

Table definitions and migrations.
"""

import sqlite3
from typing import TYPE_CHECKING

from src.core.logger import logger

if TYPE_CHECKING:
    from src.core.database.manager import DatabaseManager


class SchemaMixin:
    """Mixin for database schema initialization."""

    def _init_tables(self: "DatabaseManager") -> None:
        """
        Initialize all database tables.

        DESIGN: Tables are created if not exist, allowing safe restarts.
        The partial unique index on open tickets keeps one open ticket
        per channel even if two writers race.
        """
        conn = self._connection()
        cursor = conn.cursor()

        # -----------------------------------------------------------------
        # Ticket Categories
        # DESIGN: One row per ticket type offered on the opener panel
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS ticket_categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                description TEXT,
                emoji TEXT,
                category_id INTEGER NOT NULL,
                require_verification INTEGER NOT NULL DEFAULT 0
            )
        """)

        # -----------------------------------------------------------------
        # Ticket Category Fields
        # DESIGN: Intake form inputs, ordered by id when rendered
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS ticket_category_fields (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                category INTEGER NOT NULL
                    REFERENCES ticket_categories(id) ON DELETE CASCADE,
                label TEXT NOT NULL,
                placeholder TEXT,
                required INTEGER NOT NULL DEFAULT 1,
                short_field INTEGER NOT NULL DEFAULT 1,
                min_length INTEGER,
                max_length INTEGER
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_fields_category ON ticket_category_fields(category)"
        )

        # -----------------------------------------------------------------
        # Tickets
        # DESIGN: Never deleted; open iff closed_at IS NULL
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tickets (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                category INTEGER NOT NULL REFERENCES ticket_categories(id),
                ticket_name TEXT NOT NULL,
                channel_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                user_username TEXT NOT NULL,
                user_display_name TEXT NOT NULL,
                opened_at REAL NOT NULL,
                closed_at REAL,
                staff_thread_id INTEGER
            )
        """)
        cursor.execute(
            """CREATE UNIQUE INDEX IF NOT EXISTS idx_tickets_open_channel
               ON tickets(channel_id) WHERE closed_at IS NULL"""
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_tickets_user ON tickets(user_id)"
        )

        # -----------------------------------------------------------------
        # Ticket Messages
        # DESIGN: Append-only log the transcript is rendered from
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS ticket_messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                ticket INTEGER NOT NULL REFERENCES tickets(id),
                message_id INTEGER,
                author_id INTEGER NOT NULL,
                display_name TEXT NOT NULL,
                avatar TEXT,
                content TEXT,
                sent_at REAL NOT NULL,
                edited_at REAL
            )
        """)
        self._run_migrations(cursor)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_ticket_messages_ticket ON ticket_messages(ticket, sent_at)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_ticket_messages_message ON ticket_messages(message_id)"
        )

        # -----------------------------------------------------------------
        # Ticket Members
        # DESIGN: Removed flag instead of deletion keeps the audit trail
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS ticket_members (
                ticket INTEGER NOT NULL REFERENCES tickets(id),
                user_id INTEGER NOT NULL,
                added_by INTEGER NOT NULL,
                added_at REAL NOT NULL,
                removed INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (ticket, user_id)
            )
        """)

        conn.commit()

    def _run_migrations(self: "DatabaseManager", cursor: sqlite3.Cursor) -> None:
        """Add columns introduced after the first release."""
        cursor.execute("PRAGMA table_info(ticket_messages)")
        columns = {row[1] for row in cursor.fetchall()}
        if "message_id" not in columns:
            cursor.execute("ALTER TABLE ticket_messages ADD COLUMN message_id INTEGER")
            logger.info("Migration Applied", [("Column", "ticket_messages.message_id")])
