"""
Ticketeer - Ticket System Package
=================================

Ticket lifecycle: intake, provisioning, closure, recovery and transcripts.

Structure:
    - service.py: TicketService composed of the workflow mixins
    - intake.py, provisioning.py, closure.py, recovery.py,
      participants.py, message_log.py: the workflows
    - registry.py: in-memory index of open tickets
    - scheduler.py: deferred channel deletion
    - platform.py / discord_platform.py: platform interface and its
      discord.py implementation
    - models.py, results.py, forms.py, embeds.py: records and builders
    - modals.py, views.py, render.py, panel.py: Discord presentation
    - transcript/: HTML transcript rendering
"""

from .discord_platform import DiscordPlatform
from .models import ActiveTicket, Requester, TicketState
from .panel import refresh_ticket_panel
from .platform import TicketPlatform
from .registry import DuplicateTicketError, TicketRegistry
from .results import ErrorKind, Outcome, TicketResult
from .scheduler import DeferredTaskScheduler, ScheduledJob
from .service import TicketService
from .views import CloseTicketButton, OpenTicketSelect


def setup_ticket_views(bot) -> None:
    """Register persistent ticket components."""
    bot.add_dynamic_items(OpenTicketSelect, CloseTicketButton)


__all__ = [
    "TicketService",
    "TicketPlatform",
    "DiscordPlatform",
    "TicketRegistry",
    "DuplicateTicketError",
    "DeferredTaskScheduler",
    "ScheduledJob",
    "ActiveTicket",
    "Requester",
    "TicketState",
    "TicketResult",
    "Outcome",
    "ErrorKind",
    "OpenTicketSelect",
    "CloseTicketButton",
    "refresh_ticket_panel",
    "setup_ticket_views",
]
