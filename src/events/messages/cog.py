"""
Ticketeer - Message Events Cog
==============================

Feeds messages and edits from ticket channels into the message log.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from src.services.tickets.render import message_to_record
from src.services.tickets.transcript import serialize_content

if TYPE_CHECKING:
    from src.bot import TicketeerBot


class MessageEvents(commands.Cog):
    """Message event handlers."""

    def __init__(self, bot: "TicketeerBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """
        Log a message sent in a ticket channel.

        DESIGN: Bot messages are logged too so the intro and closure
        notices appear in transcripts. Threads are never registered,
        so staff evidence threads are skipped by the service.
        """
        service = getattr(self.bot, "ticket_service", None)
        if service is None or message.guild is None:
            return

        service.log_message(message.channel.id, message_to_record(message))

    @commands.Cog.listener()
    async def on_message_edit(self, before: discord.Message, after: discord.Message) -> None:
        """Store the edited content of a logged message."""
        service = getattr(self.bot, "ticket_service", None)
        if service is None or after.guild is None:
            return

        if before.content == after.content and before.embeds == after.embeds:
            return

        edited_at = after.edited_at.timestamp() if after.edited_at else None
        service.log_message_edit(
            after.channel.id,
            after.id,
            serialize_content(after.content, [embed.to_dict() for embed in after.embeds]),
            edited_at,
        )


__all__ = ["MessageEvents"]
