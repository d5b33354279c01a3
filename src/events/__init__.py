"""
Ticketeer - Events Package
==========================

Event handler Cogs.

DESIGN:
    Each event package contains a Cog class with @commands.Cog.listener
    decorators and is loaded with load_extension().

    Event routing:
    - messages/: Message create/edit in ticket channels
"""

# =============================================================================
# Event Cog Registry
# =============================================================================

EVENT_COGS = [
    "src.events.messages",
]
"""List of event cog module paths for dynamic loading."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "EVENT_COGS",
]
