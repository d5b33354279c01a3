"""
Ticketeer - Ticket Category Command Package
===========================================

Admin management of ticket categories.

Structure:
    - autocomplete.py: Category name suggestions
    - cog.py: /ticket-category add, list, delete, update
"""

from typing import TYPE_CHECKING

from src.core.logger import logger

from .cog import TicketCategoryCog

if TYPE_CHECKING:
    from src.bot import TicketeerBot


async def setup(bot: "TicketeerBot") -> None:
    """Load the Ticket Category cog."""
    await bot.add_cog(TicketCategoryCog(bot))
    logger.tree("Ticket Category Cog Loaded", [
        ("Commands", "/ticket-category add, list, delete, update"),
        ("Permission", "Administrator"),
    ], emoji="🗂️")


__all__ = ["TicketCategoryCog", "setup"]
