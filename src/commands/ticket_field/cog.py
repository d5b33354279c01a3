"""
Ticketeer - Ticket Field Cog
============================

Admin commands for the intake form fields of a category.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from src.commands.ticket_category.autocomplete import category_autocomplete
from src.core.constants import MODAL_MAX_INPUTS, TEXT_INPUT_PLACEHOLDER_MAX, TEXT_INPUT_VALUE_MAX
from src.core.database import get_db
from src.core.logger import logger
from src.services.tickets.embeds import build_field_list_embed
from src.services.tickets.render import to_discord_embed

if TYPE_CHECKING:
    from src.bot import TicketeerBot
    from src.core.database.manager import DatabaseManager
    from src.core.database.models import CategoryRecord


def field_capacity(category: "CategoryRecord") -> int:
    """Form fields a category may hold next to its verification input."""
    return MODAL_MAX_INPUTS - 1 if category.get("require_verification") else MODAL_MAX_INPUTS


class TicketFieldCog(commands.Cog):
    """Cog for managing intake form fields."""

    def __init__(self, bot: "TicketeerBot") -> None:
        self.bot: "TicketeerBot" = bot
        self.db: "DatabaseManager" = get_db()

    field_group = app_commands.Group(
        name="ticket-field",
        description="Manage ticket form fields",
        default_permissions=discord.Permissions(administrator=True),
        guild_only=True,
    )

    # =========================================================================
    # Add
    # =========================================================================

    @field_group.command(name="add", description="Add a form field to a ticket category")
    @app_commands.describe(
        category="Category the field belongs to",
        label="Question shown above the input",
        placeholder="Hint shown inside the empty input",
        required="Whether the field must be filled in",
        short="Single-line input (otherwise a paragraph)",
        min_length="Minimum answer length",
        max_length="Maximum answer length",
    )
    @app_commands.autocomplete(category=category_autocomplete)
    async def add(
        self,
        interaction: discord.Interaction,
        category: str,
        label: app_commands.Range[str, 1, 45],
        placeholder: Optional[app_commands.Range[str, 1, TEXT_INPUT_PLACEHOLDER_MAX]] = None,
        required: bool = True,
        short: bool = True,
        min_length: Optional[app_commands.Range[int, 0, TEXT_INPUT_VALUE_MAX]] = None,
        max_length: Optional[app_commands.Range[int, 1, TEXT_INPUT_VALUE_MAX]] = None,
    ) -> None:
        """Attach a field, refusing once the form is full."""
        record = self.db.get_category_by_name(category)
        if record is None:
            await interaction.response.send_message(f"No category named **{category}**.", ephemeral=True)
            return

        if min_length is not None and max_length is not None and min_length > max_length:
            await interaction.response.send_message(
                "Minimum length cannot be greater than maximum length.",
                ephemeral=True,
            )
            return

        capacity = field_capacity(record)
        if self.db.count_fields(record["id"]) >= capacity:
            await interaction.response.send_message(
                f"**{category}** already has {capacity} fields, the most a form can hold"
                + (" next to the transaction id." if record.get("require_verification") else "."),
                ephemeral=True,
            )
            return

        field_id = self.db.add_field(
            record["id"],
            label=label,
            placeholder=placeholder,
            required=required,
            short_field=short,
            min_length=min_length,
            max_length=max_length,
        )

        logger.tree("Field Added By Admin", [
            ("Category", record["name"]),
            ("Field", f"#{field_id} {label}"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
        ], emoji="📝")

        await interaction.response.send_message(
            f"Field **#{field_id} {label}** added to **{category}**.",
            ephemeral=True,
        )

    # =========================================================================
    # List
    # =========================================================================

    @field_group.command(name="list", description="List the form fields of a ticket category")
    @app_commands.describe(category="Category to list")
    @app_commands.autocomplete(category=category_autocomplete)
    async def list_fields(self, interaction: discord.Interaction, category: str) -> None:
        record = self.db.get_category_by_name(category)
        if record is None:
            await interaction.response.send_message(f"No category named **{category}**.", ephemeral=True)
            return

        await interaction.response.send_message(
            embed=to_discord_embed(build_field_list_embed(record, self.db.get_fields(record["id"]))),
            ephemeral=True,
        )

    # =========================================================================
    # Remove
    # =========================================================================

    @field_group.command(name="remove", description="Remove a form field")
    @app_commands.describe(field_id="Field id, as shown by /ticket-field list")
    async def remove(self, interaction: discord.Interaction, field_id: int) -> None:
        if not self.db.remove_field(field_id):
            await interaction.response.send_message(f"No field with id **{field_id}**.", ephemeral=True)
            return

        logger.info("Field Removed By Admin", [
            ("Field", str(field_id)),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
        ])
        await interaction.response.send_message(f"Field **#{field_id}** removed.", ephemeral=True)


__all__ = ["TicketFieldCog", "field_capacity"]
