"""
Ticketeer - Ticket Field Command Package
========================================

Admin management of the intake form fields of each category.
"""

from typing import TYPE_CHECKING

from src.core.logger import logger

from .cog import TicketFieldCog, field_capacity

if TYPE_CHECKING:
    from src.bot import TicketeerBot


async def setup(bot: "TicketeerBot") -> None:
    """Load the Ticket Field cog."""
    await bot.add_cog(TicketFieldCog(bot))
    logger.tree("Ticket Field Cog Loaded", [
        ("Commands", "/ticket-field add, list, remove"),
        ("Permission", "Administrator"),
    ], emoji="📝")


__all__ = ["TicketFieldCog", "field_capacity", "setup"]
