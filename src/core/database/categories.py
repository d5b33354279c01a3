"""
Ticketeer - Database Category Operations Module
===============================================

Ticket category CRUD used by the admin commands and the intake workflow.
"""

import sqlite3
from typing import Optional, List, TYPE_CHECKING

from src.core.logger import logger
from src.core.database.models import CategoryRecord

if TYPE_CHECKING:
    from src.core.database.manager import DatabaseManager


# Columns an admin update may touch
_UPDATABLE_COLUMNS = ("name", "description", "emoji", "category_id", "require_verification")


class CategoriesMixin:
    """Mixin for ticket category database operations."""

    def add_category(
        self: "DatabaseManager",
        name: str,
        category_id: int,
        description: Optional[str] = None,
        emoji: Optional[str] = None,
        require_verification: bool = True,
    ) -> Optional[int]:
        """
        Create a ticket category.

        Args:
            name: Unique display name.
            category_id: Discord category channel new tickets are created under.
            description: Optional description shown on the opener panel.
            emoji: Optional emoji shown on the opener panel.
            require_verification: Whether a purchase verification is mandatory.

        Returns:
            New category id, or None if the name is already taken.
        """
        try:
            cursor = self.execute(
                """INSERT INTO ticket_categories
                   (name, description, emoji, category_id, require_verification)
                   VALUES (?, ?, ?, ?, ?)""",
                (name, description, emoji, category_id, int(require_verification)),
            )
        except sqlite3.IntegrityError:
            logger.warning("Duplicate Ticket Category", [("Name", name)])
            return None

        logger.tree("Ticket Category Created", [
            ("ID", str(cursor.lastrowid)),
            ("Name", name),
            ("Discord Category", str(category_id)),
            ("Verification", "Required" if require_verification else "Not required"),
        ], emoji="🗂️")
        return cursor.lastrowid

    def get_category(self: "DatabaseManager", category_id: int) -> Optional[CategoryRecord]:
        """Get a category by its id."""
        row = self.fetchone("SELECT * FROM ticket_categories WHERE id = ?", (category_id,))
        return dict(row) if row else None

    def get_category_by_name(self: "DatabaseManager", name: str) -> Optional[CategoryRecord]:
        """Get a category by its exact name."""
        row = self.fetchone("SELECT * FROM ticket_categories WHERE name = ?", (name,))
        return dict(row) if row else None

    def get_categories(self: "DatabaseManager") -> List[CategoryRecord]:
        """Get every category, oldest first."""
        rows = self.fetchall("SELECT * FROM ticket_categories ORDER BY id ASC")
        return [dict(row) for row in rows]

    def search_categories(
        self: "DatabaseManager",
        query: str,
        limit: int = 25,
    ) -> List[CategoryRecord]:
        """Find categories whose name contains the query (autocomplete)."""
        rows = self.fetchall(
            """SELECT * FROM ticket_categories WHERE name LIKE ?
               ORDER BY name ASC LIMIT ?""",
            (f"%{query}%", limit),
        )
        return [dict(row) for row in rows]

    def update_category(self: "DatabaseManager", category_id: int, /, **changes) -> bool:
        """
        Update selected columns of a category.

        Args:
            category_id: Category to update.
            **changes: Column values; None values are ignored.

        Returns:
            True if a row was updated.

        Raises:
            sqlite3.IntegrityError: If the new name is already taken.
        """
        updates = {
            key: value for key, value in changes.items()
            if key in _UPDATABLE_COLUMNS and value is not None
        }
        if not updates:
            return False

        if "require_verification" in updates:
            updates["require_verification"] = int(updates["require_verification"])

        assignments = ", ".join(f"{column} = ?" for column in updates)
        cursor = self.execute(
            f"UPDATE ticket_categories SET {assignments} WHERE id = ?",
            (*updates.values(), category_id),
        )
        if cursor.rowcount > 0:
            logger.tree("Ticket Category Updated", [
                ("ID", str(category_id)),
                ("Changed", ", ".join(updates)),
            ], emoji="🗂️")
        return cursor.rowcount > 0

    def count_category_tickets(self: "DatabaseManager", category_id: int) -> int:
        """Count tickets (open or closed) referencing a category."""
        row = self.fetchone(
            "SELECT COUNT(*) AS total FROM tickets WHERE category = ?",
            (category_id,),
        )
        return row["total"] if row else 0

    def delete_category(self: "DatabaseManager", category_id: int) -> bool:
        """
        Delete a category and its fields.

        Returns:
            False if tickets still reference the category or it does not exist.
        """
        if self.count_category_tickets(category_id) > 0:
            return False

        cursor = self.execute("DELETE FROM ticket_categories WHERE id = ?", (category_id,))
        if cursor.rowcount > 0:
            logger.tree("Ticket Category Deleted", [("ID", str(category_id))], emoji="🗑️")
        return cursor.rowcount > 0
