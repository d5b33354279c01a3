"""
Ticketeer - Ticket Recovery
===========================

Startup reconciliation of open ticket rows against Discord.
"""

import sqlite3
from typing import TYPE_CHECKING, Dict

from src.core.database.models import TicketRecord
from src.core.logger import logger

from .embeds import build_closure_embed
from .models import ActiveTicket, RecoveryReport
from .transcript import embed_marker

if TYPE_CHECKING:
    from .service import TicketService


class RecoveryMixin:
    """Mixin for rebuilding the registry after a restart."""

    async def reload_tickets(self: "TicketService") -> RecoveryReport:
        """
        Register every open ticket whose channel still exists.

        DESIGN:
            A channel that cannot be resolved, whether Discord reports it
            missing or the lookup itself errors, means the ticket cannot
            be served, so it is force-closed with a closure entry authored
            by the bot. Each ticket is handled on its own; one failure
            never aborts the pass for the others.

        Returns:
            RecoveryReport with restored, closed and failed counts.
        """
        report = RecoveryReport()

        try:
            open_tickets = self.db.get_open_tickets()
        except sqlite3.Error as e:
            logger.error("Ticket Reload Failed", [("Error", str(e)[:100])])
            return report

        category_names: Dict[int, str] = {}

        for record in open_tickets:
            channel_id = record["channel_id"]
            if channel_id in self.registry:
                continue

            try:
                channel = await self.platform.fetch_channel(channel_id)
            except Exception as e:
                logger.warning("Ticket Channel Lookup Failed", [
                    ("Ticket ID", str(record["id"])),
                    ("Channel", str(channel_id)),
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100]),
                ])
                channel = None

            if channel is None:
                if self._force_close_orphan(record):
                    report.closed += 1
                else:
                    report.failed += 1
                continue

            try:
                if record["category"] not in category_names:
                    category = self.db.get_category(record["category"])
                    category_names[record["category"]] = category["name"] if category else "Unknown"

                self.registry.register(channel_id, ActiveTicket.from_record(
                    record,
                    category_names[record["category"]],
                    channel_name=channel.name,
                    channel_url=channel.url,
                ))
            except Exception as e:
                report.failed += 1
                logger.error("Ticket Restore Failed", [
                    ("Ticket ID", str(record["id"])),
                    ("Channel", str(channel_id)),
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100]),
                ])
                continue

            report.restored += 1

        logger.tree("Tickets Reloaded", [
            ("Open Rows", str(len(open_tickets))),
            ("Restored", str(report.restored)),
            ("Force-Closed", str(report.closed)),
            ("Failed", str(report.failed)),
        ], emoji="♻️")
        return report

    def _force_close_orphan(self: "TicketService", record: TicketRecord) -> bool:
        """Close a ticket whose channel no longer exists."""
        bot = self.platform.bot_identity
        try:
            self.db.close_ticket(
                record["id"],
                author_id=bot.id,
                display_name=bot.display_name,
                avatar=bot.avatar_url,
                content=embed_marker(build_closure_embed(None)),
            )
        except sqlite3.Error as e:
            logger.error("Orphan Ticket Close Failed", [
                ("Ticket ID", str(record["id"])),
                ("Error", str(e)[:100]),
            ])
            return False

        logger.info("Orphan Ticket Closed", [
            ("Ticket ID", str(record["id"])),
            ("Channel", str(record["channel_id"])),
        ])
        return True


__all__ = ["RecoveryMixin"]
