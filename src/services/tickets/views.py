"""
Ticketeer - Ticket Views
========================

Persistent components: the opener panel select and the close button.

DESIGN:
    Both are DynamicItems registered once in setup_hook, so they keep
    working on messages sent before a restart. Callbacks only translate
    the interaction into a service call.
"""

import re
from typing import TYPE_CHECKING, List, Optional, Sequence

import discord

from src.core.constants import (
    CLOSE_TICKET_BUTTON_ID,
    NO_CATEGORY_VALUE,
    OPEN_TICKET_SELECT_ID,
    SELECT_MAX_OPTIONS,
)
from src.core.database.models import CategoryRecord
from src.core.logger import logger

from .render import requester_from_member

if TYPE_CHECKING:
    from src.bot import TicketeerBot


async def _service_or_reply(interaction: discord.Interaction):
    bot: "TicketeerBot" = interaction.client
    service = getattr(bot, "ticket_service", None)
    if service is None:
        await interaction.response.send_message(
            "Ticket system is not available.",
            ephemeral=True,
        )
    return service


# =============================================================================
# Opener Panel Select
# =============================================================================

def build_category_options(categories: Sequence[CategoryRecord]) -> List[discord.SelectOption]:
    """One option per category, or the single "No available categories" option."""
    options = [
        discord.SelectOption(
            label=category["name"][:100],
            value=str(category["id"]),
            description=(category.get("description") or "")[:100] or None,
            emoji=category.get("emoji") or None,
        )
        for category in categories[:SELECT_MAX_OPTIONS]
    ]
    if not options:
        options = [discord.SelectOption(label="No available categories", value=NO_CATEGORY_VALUE)]
    return options


class OpenTicketSelect(discord.ui.DynamicItem[discord.ui.Select], template=r"open-ticket"):
    """Category select on the opener panel."""

    def __init__(self, options: Optional[List[discord.SelectOption]] = None) -> None:
        super().__init__(
            discord.ui.Select(
                custom_id=OPEN_TICKET_SELECT_ID,
                placeholder="Select a ticket category...",
                min_values=1,
                max_values=1,
                options=options or build_category_options([]),
            )
        )

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Select,
        match: re.Match[str],
    ) -> "OpenTicketSelect":
        return cls(list(item.options))

    async def callback(self, interaction: discord.Interaction) -> None:
        value = self.item.values[0] if self.item.values else NO_CATEGORY_VALUE

        logger.tree("Ticket Category Selected", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Category", value),
        ], emoji="🎫")

        service = await _service_or_reply(interaction)
        if service is None:
            return

        if value == NO_CATEGORY_VALUE or not value.isdigit():
            await interaction.response.send_message(
                "There are no ticket categories available right now.",
                ephemeral=True,
            )
            return

        requester = requester_from_member(interaction.user, service.config)
        await service.open_ticket(interaction, requester, int(value))


def build_panel_view(categories: Sequence[CategoryRecord]) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(OpenTicketSelect(build_category_options(categories)))
    return view


# =============================================================================
# Close Button
# =============================================================================

class CloseTicketButton(discord.ui.DynamicItem[discord.ui.Button], template=r"close-ticket"):
    """Close button attached to every ticket intro message."""

    def __init__(self) -> None:
        super().__init__(
            discord.ui.Button(
                label="Close Ticket",
                style=discord.ButtonStyle.danger,
                custom_id=CLOSE_TICKET_BUTTON_ID,
                emoji="🔒",
            )
        )

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match: re.Match[str],
    ) -> "CloseTicketButton":
        return cls()

    async def callback(self, interaction: discord.Interaction) -> None:
        logger.tree("Close Button Clicked", [
            ("Clicked By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Channel", str(interaction.channel_id)),
        ], emoji="🔒")

        service = await _service_or_reply(interaction)
        if service is None:
            return

        closer = requester_from_member(interaction.user, service.config)
        await service.request_close(interaction, interaction.channel_id, closer)


def build_close_view() -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(CloseTicketButton())
    return view


__all__ = [
    "build_category_options",
    "OpenTicketSelect",
    "build_panel_view",
    "CloseTicketButton",
    "build_close_view",
]
