"""
Ticketeer - Database Category Field Operations Module
=====================================================

Intake form fields attached to ticket categories.
"""

from typing import Optional, List, TYPE_CHECKING

from src.core.logger import logger
from src.core.database.models import CategoryFieldRecord

if TYPE_CHECKING:
    from src.core.database.manager import DatabaseManager


class FieldsMixin:
    """Mixin for ticket category field operations."""

    def add_field(
        self: "DatabaseManager",
        category_id: int,
        label: str,
        placeholder: Optional[str] = None,
        required: bool = True,
        short_field: bool = True,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> int:
        """
        Attach a form field to a category.

        Returns:
            New field id.
        """
        cursor = self.execute(
            """INSERT INTO ticket_category_fields
               (category, label, placeholder, required, short_field, min_length, max_length)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (category_id, label, placeholder, int(required), int(short_field), min_length, max_length),
        )
        logger.tree("Ticket Field Added", [
            ("ID", str(cursor.lastrowid)),
            ("Category", str(category_id)),
            ("Label", label),
            ("Required", str(required)),
        ], emoji="📝")
        return cursor.lastrowid

    def get_field(self: "DatabaseManager", field_id: int) -> Optional[CategoryFieldRecord]:
        """Get a field by its id."""
        row = self.fetchone("SELECT * FROM ticket_category_fields WHERE id = ?", (field_id,))
        return dict(row) if row else None

    def get_fields(self: "DatabaseManager", category_id: int) -> List[CategoryFieldRecord]:
        """Get a category's fields in creation order."""
        rows = self.fetchall(
            "SELECT * FROM ticket_category_fields WHERE category = ? ORDER BY id ASC",
            (category_id,),
        )
        return [dict(row) for row in rows]

    def count_fields(self: "DatabaseManager", category_id: int) -> int:
        """Count a category's fields."""
        row = self.fetchone(
            "SELECT COUNT(*) AS total FROM ticket_category_fields WHERE category = ?",
            (category_id,),
        )
        return row["total"] if row else 0

    def remove_field(self: "DatabaseManager", field_id: int) -> bool:
        """Remove a field. Returns False if it did not exist."""
        cursor = self.execute("DELETE FROM ticket_category_fields WHERE id = ?", (field_id,))
        if cursor.rowcount > 0:
            logger.tree("Ticket Field Removed", [("ID", str(field_id))], emoji="🗑️")
        return cursor.rowcount > 0
