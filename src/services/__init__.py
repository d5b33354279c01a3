"""
Ticketeer - Services Package
============================

Ticket lifecycle and external integrations.

DESIGN:
    Services hold no Discord objects of their own. The ticket service
    talks to Discord through a platform adapter and to Tebex through
    an injected verifier, so both can be replaced in tests.

Available Services:
    TicketService: Intake, closure, recovery and transcripts
    TebexClient: Purchase verification against the Tebex Plugin API
"""

# =============================================================================
# Service Imports
# =============================================================================

from .tickets import (
    DiscordPlatform,
    TicketRegistry,
    TicketService,
    refresh_ticket_panel,
    setup_ticket_views,
)
from .verification import TebexClient, VerificationResult


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "TicketService",
    "TicketRegistry",
    "DiscordPlatform",
    "refresh_ticket_panel",
    "setup_ticket_views",
    "TebexClient",
    "VerificationResult",
]
