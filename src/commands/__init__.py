"""
Ticketeer - Commands Package
============================

Slash command implementations, one Cog package per command group.

DESIGN:
    Each package exposes async def setup(bot) and is loaded with
    load_extension(). Add new command packages to COMMAND_COGS.

Available Commands:
    /ticket-category add, list, delete, update (administrator)
    /ticket-field add, list, remove (administrator)
    /close: Close the current ticket (owner or staff)
    /export-transcript: Export the current ticket's transcript (staff)
    /ticket add, remove: Manage ticket members (staff)
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "src.commands.ticket_category",
    "src.commands.ticket_field",
    "src.commands.tickets",
]
"""List of command cog module paths for dynamic loading."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "COMMAND_COGS",
]
