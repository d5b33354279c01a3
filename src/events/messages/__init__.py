"""
Ticketeer - Message Events Package
==================================

Handles message create and edit events for ticket channels.

Structure:
    - cog.py: MessageEvents cog with event listeners
"""

from typing import TYPE_CHECKING

from src.core.logger import logger

from .cog import MessageEvents

if TYPE_CHECKING:
    from src.bot import TicketeerBot


async def setup(bot: "TicketeerBot") -> None:
    """Add the message events cog to the bot."""
    await bot.add_cog(MessageEvents(bot))
    logger.debug("Message Events Loaded")


__all__ = ["MessageEvents", "setup"]
