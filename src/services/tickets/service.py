"""
Ticketeer - Ticket Service
==========================

Core service logic for the ticket system.
"""

from typing import Optional

from src.core.config import Config, get_config
from src.core.database import DatabaseManager, get_db
from src.core.logger import logger

from .closure import ClosureMixin
from .intake import IntakeMixin
from .message_log import MessageLogMixin
from .participants import ParticipantsMixin
from .platform import TicketPlatform
from .provisioning import ProvisioningMixin
from .recovery import RecoveryMixin
from .registry import TicketRegistry
from .scheduler import DeferredTaskScheduler


class TicketService(
    IntakeMixin,
    ProvisioningMixin,
    ClosureMixin,
    RecoveryMixin,
    ParticipantsMixin,
    MessageLogMixin,
):
    """
    Service for managing support tickets.

    DESIGN:
        Tickets are private text channels created under a category's
        Discord category, one row in `tickets` each. The registry maps
        channel ids to open tickets for event dispatch and is rebuilt
        from the database on start.

        Collaborators are injected: the platform (Discord or a test
        fake), the registry, the purchase verifier and the scheduler
        for deferred channel deletion. Database and config default to
        the process-wide singletons.
    """

    def __init__(
        self,
        platform: TicketPlatform,
        registry: TicketRegistry,
        verifier=None,
        db: Optional[DatabaseManager] = None,
        config: Optional[Config] = None,
        scheduler: Optional[DeferredTaskScheduler] = None,
    ) -> None:
        self.platform = platform
        self.registry = registry
        self.verifier = verifier
        self.db = db or get_db()
        self.config = config or get_config()
        self.scheduler = scheduler or DeferredTaskScheduler()

        logger.tree("Ticket Service Initialized", [
            ("Transcript Channel", str(self.config.transcript_channel_id or "None")),
            ("Staff Roles", str(len(self.config.staff_role_ids))),
            ("Verification", "Enabled" if verifier is not None else "Disabled"),
        ], emoji="🎫")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Rebuild the registry from open ticket rows."""
        report = await self.reload_tickets()
        logger.tree("Ticket Service Started", [
            ("Open Tickets", str(len(self.registry))),
            ("Force-Closed", str(report.closed)),
        ], emoji="🎫")

    async def stop(self) -> None:
        """Cancel pending channel deletions."""
        cancelled = await self.scheduler.stop()
        logger.info("Ticket Service Stopped", [("Cancelled Deletions", str(cancelled))])


__all__ = ["TicketService"]
