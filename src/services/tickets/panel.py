"""
Ticketeer - Ticket Opener Panel
===============================

Keeps one bot-authored opener panel in the configured channel.
"""

from typing import TYPE_CHECKING, Optional

import discord

from src.core.config import get_config
from src.core.database import get_db
from src.core.logger import logger
from src.utils.discord_rate_limit import log_http_error

from .embeds import build_panel_embed
from .render import to_discord_embed
from .views import build_panel_view

if TYPE_CHECKING:
    from src.bot import TicketeerBot


PANEL_SEARCH_LIMIT = 50


async def _find_panel_message(
    channel: discord.TextChannel,
    bot_user_id: int,
) -> Optional[discord.Message]:
    """Most recent bot message in the channel that carries components."""
    async for message in channel.history(limit=PANEL_SEARCH_LIMIT):
        if message.author.id == bot_user_id and message.components:
            return message
    return None


async def refresh_ticket_panel(bot: "TicketeerBot") -> bool:
    """
    Edit the opener panel in place, or send it if none exists.

    Returns:
        True if the panel is up to date.
    """
    config = get_config()
    if not config.ticket_opener_channel_id:
        logger.debug("Ticket Panel Skipped (no opener channel configured)")
        return False

    channel = bot.get_channel(config.ticket_opener_channel_id)
    if channel is None:
        try:
            channel = await bot.fetch_channel(config.ticket_opener_channel_id)
        except discord.HTTPException as e:
            log_http_error(e, "Fetch Opener Channel", [("Channel", str(config.ticket_opener_channel_id))])
            return False

    if not isinstance(channel, discord.TextChannel):
        logger.warning("Ticket Opener Channel Invalid", [("Channel", str(config.ticket_opener_channel_id))])
        return False

    categories = get_db().get_categories()
    embed = to_discord_embed(build_panel_embed(categories))
    view = build_panel_view(categories)

    try:
        message = await _find_panel_message(channel, bot.user.id)
        if message is not None:
            await message.edit(embed=embed, view=view)
            action = "Updated"
        else:
            await channel.send(embed=embed, view=view)
            action = "Sent"
    except discord.HTTPException as e:
        log_http_error(e, "Ticket Panel", [("Channel", f"#{channel.name} ({channel.id})")])
        return False

    logger.tree(f"Ticket Panel {action}", [
        ("Channel", f"#{channel.name} ({channel.id})"),
        ("Categories", str(len(categories))),
    ], emoji="🎫")
    return True


__all__ = ["refresh_ticket_panel"]
