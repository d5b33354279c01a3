"""
Ticketeer - Tickets Cog
=======================

Commands used inside ticket channels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from src.core.config import get_config
from src.core.logger import logger
from src.services.tickets.render import requester_from_member, to_discord_file

if TYPE_CHECKING:
    from src.bot import TicketeerBot
    from src.core.config import Config
    from src.services.tickets import TicketService


class TicketsCog(commands.Cog):
    """Cog for closing tickets, exporting transcripts and managing members."""

    def __init__(self, bot: "TicketeerBot") -> None:
        self.bot: "TicketeerBot" = bot
        self.config: "Config" = get_config()

    @property
    def service(self) -> Optional["TicketService"]:
        return getattr(self.bot, "ticket_service", None)

    async def _require_service(self, interaction: discord.Interaction) -> Optional["TicketService"]:
        if self.service is None:
            await interaction.response.send_message("Ticket system is not available.", ephemeral=True)
        return self.service

    # =========================================================================
    # Close
    # =========================================================================

    @app_commands.command(name="close", description="Close the current ticket")
    @app_commands.describe(reason="Reason for closing (asked for in a form when omitted)")
    @app_commands.guild_only()
    async def close(self, interaction: discord.Interaction, reason: Optional[str] = None) -> None:
        """Close the ticket this command is used in."""
        service = await self._require_service(interaction)
        if service is None:
            return

        await service.request_close(
            interaction,
            interaction.channel_id,
            requester_from_member(interaction.user, self.config),
            reason=reason,
        )

    # =========================================================================
    # Export Transcript
    # =========================================================================

    @app_commands.command(name="export-transcript", description="Export the transcript of the current ticket")
    @app_commands.guild_only()
    async def export_transcript(self, interaction: discord.Interaction) -> None:
        """Render the transcript and reply with the file."""
        service = await self._require_service(interaction)
        if service is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await service.export_transcript(
            interaction.channel_id,
            requester_from_member(interaction.user, self.config),
        )

        if not result.is_ok:
            await interaction.followup.send(result.user_message, ephemeral=True)
            return

        try:
            await interaction.followup.send(
                "Transcript exported.",
                file=to_discord_file(result.value),
                ephemeral=True,
            )
        except discord.HTTPException as e:
            logger.warning("Transcript Reply Failed", [
                ("Channel", str(interaction.channel_id)),
                ("Error", str(e)[:100]),
            ])

    # =========================================================================
    # Participants
    # =========================================================================

    ticket_group = app_commands.Group(
        name="ticket",
        description="Manage the members of the current ticket",
        guild_only=True,
    )

    @ticket_group.command(name="add", description="Give a member access to this ticket")
    @app_commands.describe(member="Member to add")
    async def add_member(self, interaction: discord.Interaction, member: discord.Member) -> None:
        service = await self._require_service(interaction)
        if service is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await service.add_participant(
            interaction.channel_id,
            requester_from_member(member, self.config),
            requester_from_member(interaction.user, self.config),
        )
        message = f"{member.mention} has been added to this ticket." if result.is_ok else result.user_message
        await interaction.followup.send(message, ephemeral=True)

    @ticket_group.command(name="remove", description="Remove a member from this ticket")
    @app_commands.describe(member="Member to remove")
    async def remove_member(self, interaction: discord.Interaction, member: discord.Member) -> None:
        service = await self._require_service(interaction)
        if service is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await service.remove_participant(
            interaction.channel_id,
            requester_from_member(member, self.config),
            requester_from_member(interaction.user, self.config),
        )
        message = f"{member.mention} has been removed from this ticket." if result.is_ok else result.user_message
        await interaction.followup.send(message, ephemeral=True)


__all__ = ["TicketsCog"]
