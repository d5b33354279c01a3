"""
Ticketeer - Ticket Category Cog
===============================

Admin commands for the categories offered on the opener panel.
"""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from src.core.config import get_config
from src.core.constants import MODAL_MAX_INPUTS
from src.core.database import get_db
from src.core.logger import logger
from src.services.tickets import refresh_ticket_panel
from src.services.tickets.embeds import build_category_list_embed
from src.services.tickets.render import to_discord_embed

from .autocomplete import category_autocomplete

if TYPE_CHECKING:
    from src.bot import TicketeerBot
    from src.core.config import Config
    from src.core.database.manager import DatabaseManager


class TicketCategoryCog(commands.Cog):
    """Cog for creating, listing, updating and deleting ticket categories."""

    def __init__(self, bot: "TicketeerBot") -> None:
        self.bot: "TicketeerBot" = bot
        self.config: "Config" = get_config()
        self.db: "DatabaseManager" = get_db()

    # =========================================================================
    # Command Group
    # =========================================================================

    category_group = app_commands.Group(
        name="ticket-category",
        description="Manage ticket categories",
        default_permissions=discord.Permissions(administrator=True),
        guild_only=True,
    )

    async def _refresh_panel(self) -> None:
        if not await refresh_ticket_panel(self.bot):
            logger.warning("Ticket Panel Not Refreshed", [("Reason", "See previous log entries")])

    # =========================================================================
    # Add
    # =========================================================================

    @category_group.command(name="add", description="Create a ticket category")
    @app_commands.describe(
        name="Name shown on the opener panel",
        category="Discord category new tickets are created under",
        description="Short description shown on the opener panel",
        emoji="Emoji shown on the opener panel",
        require_verification="Require a Tebex transaction id to open a ticket",
    )
    async def add(
        self,
        interaction: discord.Interaction,
        name: app_commands.Range[str, 1, 100],
        category: discord.CategoryChannel,
        description: Optional[app_commands.Range[str, 1, 100]] = None,
        emoji: Optional[str] = None,
        require_verification: bool = True,
    ) -> None:
        """Create a category and refresh the panel."""
        category_id = self.db.add_category(
            name=name,
            category_id=category.id,
            description=description,
            emoji=emoji,
            require_verification=require_verification,
        )
        if category_id is None:
            await interaction.response.send_message(
                f"A category named **{name}** already exists.",
                ephemeral=True,
            )
            return

        logger.tree("Category Added By Admin", [
            ("Name", name),
            ("Discord Category", f"{category.name} ({category.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
        ], emoji="🗂️")

        await interaction.response.send_message(
            f"Category **{name}** created under {category.mention}.",
            ephemeral=True,
        )
        await self._refresh_panel()

    # =========================================================================
    # List
    # =========================================================================

    @category_group.command(name="list", description="List ticket categories")
    async def list_categories(self, interaction: discord.Interaction) -> None:
        categories = self.db.get_categories()
        field_counts = {category["id"]: self.db.count_fields(category["id"]) for category in categories}
        await interaction.response.send_message(
            embed=to_discord_embed(build_category_list_embed(categories, field_counts)),
            ephemeral=True,
        )

    # =========================================================================
    # Delete
    # =========================================================================

    @category_group.command(name="delete", description="Delete a ticket category")
    @app_commands.describe(name="Category to delete")
    @app_commands.autocomplete(name=category_autocomplete)
    async def delete(self, interaction: discord.Interaction, name: str) -> None:
        """Delete a category. Categories with tickets are kept."""
        category = self.db.get_category_by_name(name)
        if category is None:
            await interaction.response.send_message(f"No category named **{name}**.", ephemeral=True)
            return

        ticket_count = self.db.count_category_tickets(category["id"])
        if ticket_count > 0 or not self.db.delete_category(category["id"]):
            await interaction.response.send_message(
                f"Category **{name}** is used by {ticket_count} ticket(s) and cannot be deleted.",
                ephemeral=True,
            )
            return

        logger.tree("Category Deleted By Admin", [
            ("Name", name),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
        ], emoji="🗑️")

        await interaction.response.send_message(f"Category **{name}** deleted.", ephemeral=True)
        await self._refresh_panel()

    # =========================================================================
    # Update
    # =========================================================================

    @category_group.command(name="update", description="Update a ticket category")
    @app_commands.describe(
        name="Category to update",
        new_name="New name",
        category="New Discord category for tickets",
        description="New description",
        emoji="New emoji",
        require_verification="Require a Tebex transaction id to open a ticket",
    )
    @app_commands.autocomplete(name=category_autocomplete)
    async def update(
        self,
        interaction: discord.Interaction,
        name: str,
        new_name: Optional[app_commands.Range[str, 1, 100]] = None,
        category: Optional[discord.CategoryChannel] = None,
        description: Optional[app_commands.Range[str, 1, 100]] = None,
        emoji: Optional[str] = None,
        require_verification: Optional[bool] = None,
    ) -> None:
        """Change any subset of a category's settings."""
        existing = self.db.get_category_by_name(name)
        if existing is None:
            await interaction.response.send_message(f"No category named **{name}**.", ephemeral=True)
            return

        if require_verification and not existing["require_verification"]:
            field_count = self.db.count_fields(existing["id"])
            if field_count > MODAL_MAX_INPUTS - 1:
                await interaction.response.send_message(
                    f"**{name}** has {field_count} fields. A form holds at most "
                    f"{MODAL_MAX_INPUTS - 1} next to the transaction id, so remove "
                    "some before requiring verification.",
                    ephemeral=True,
                )
                return

        try:
            updated = self.db.update_category(
                existing["id"],
                name=new_name,
                category_id=category.id if category else None,
                description=description,
                emoji=emoji,
                require_verification=require_verification,
            )
        except sqlite3.IntegrityError:
            await interaction.response.send_message(
                f"A category named **{new_name}** already exists.",
                ephemeral=True,
            )
            return

        if not updated:
            await interaction.response.send_message("Nothing to update.", ephemeral=True)
            return

        await interaction.response.send_message(
            f"Category **{new_name or name}** updated.",
            ephemeral=True,
        )
        await self._refresh_panel()


__all__ = ["TicketCategoryCog"]
