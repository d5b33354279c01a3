"""
Ticketeer - Ticket Registry
===========================

In-memory index of open tickets keyed by channel id.

DESIGN:
    The registry is a plain object handed to TicketService at
    construction, not a module global. Tests build their own and the
    bot builds exactly one. Entries exist only for tickets whose
    database row is open; closure and recovery keep the two in step.
"""

from typing import Dict, Optional

from src.core.logger import logger

from .models import ActiveTicket


class DuplicateTicketError(ValueError):
    """Raised when a second ticket is registered on the same channel."""


class TicketRegistry:
    """Channel id -> ActiveTicket map with at most one entry per channel."""

    def __init__(self) -> None:
        self._tickets: Dict[int, ActiveTicket] = {}

    def register(self, channel_id: int, ticket: ActiveTicket) -> None:
        """
        Add an open ticket.

        Raises:
            DuplicateTicketError: If the channel already has a ticket.
        """
        if channel_id in self._tickets:
            raise DuplicateTicketError(
                f"Channel {channel_id} already has ticket #{self._tickets[channel_id].ticket_id}"
            )
        self._tickets[channel_id] = ticket
        logger.debug("Ticket Registered", [
            ("Ticket ID", str(ticket.ticket_id)),
            ("Channel", str(channel_id)),
        ])

    def get(self, channel_id: int) -> Optional[ActiveTicket]:
        return self._tickets.get(channel_id)

    def unregister(self, channel_id: int) -> Optional[ActiveTicket]:
        """Remove and return the channel's ticket, if any."""
        ticket = self._tickets.pop(channel_id, None)
        if ticket:
            logger.debug("Ticket Unregistered", [
                ("Ticket ID", str(ticket.ticket_id)),
                ("Channel", str(channel_id)),
            ])
        return ticket

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._tickets

    def __len__(self) -> int:
        return len(self._tickets)


__all__ = ["TicketRegistry", "DuplicateTicketError"]
