"""
Ticketeer - Category Autocomplete
=================================

Category name suggestions shared by the admin commands.
"""

from typing import List

import discord
from discord import app_commands

from src.core.database import get_db


async def category_autocomplete(
    interaction: discord.Interaction,
    current: str,
) -> List[app_commands.Choice[str]]:
    """Suggest category names containing the typed text."""
    categories = get_db().search_categories(current or "", limit=25)
    return [
        app_commands.Choice(
            name=f"{category['emoji']} {category['name']}"[:100] if category.get("emoji") else category["name"][:100],
            value=category["name"],
        )
        for category in categories
    ]


__all__ = ["category_autocomplete"]
