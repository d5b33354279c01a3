"""
Ticketeer - Tickets Command Package
===================================

In-ticket commands: close, transcript export and member management.
"""

from typing import TYPE_CHECKING

from src.core.logger import logger

from .cog import TicketsCog

if TYPE_CHECKING:
    from src.bot import TicketeerBot


async def setup(bot: "TicketeerBot") -> None:
    """Load the Tickets cog."""
    await bot.add_cog(TicketsCog(bot))
    logger.tree("Tickets Cog Loaded", [
        ("Commands", "/close, /export-transcript, /ticket add, /ticket remove"),
    ], emoji="🎫")


__all__ = ["TicketsCog", "setup"]
