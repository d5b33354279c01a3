"""
Ticketeer - Main Bot Class
==========================

Core Discord client running the ticket system.

Features:
- Category-based private ticket channels with intake forms
- Tebex purchase verification for paid-support categories
- HTML transcripts archived on closure
- Opener panel kept in sync with the configured categories
"""

from datetime import datetime
from typing import Optional

import discord
from discord.ext import commands

from src.core.config import get_config
from src.core.database import get_db
from src.core.logger import logger
from src.services.tickets import (
    DeferredTaskScheduler,
    DiscordPlatform,
    TicketRegistry,
    TicketService,
    refresh_ticket_panel,
    setup_ticket_views,
)
from src.services.verification import TebexClient


# =============================================================================
# TicketeerBot Class
# =============================================================================

class TicketeerBot(commands.Bot):
    """
    Main Discord bot class for Ticketeer.

    DESIGN: Central orchestrator that:
    - Loads command and event cogs
    - Holds the ticket service that cogs and components reach through
      interaction.client
    - Manages bot lifecycle (startup, shutdown)

    SERVICE INITIALIZATION ORDER:
    1. setup_hook (before on_ready):
       - Command cog loading
       - Event cog loading
       - Persistent ticket components
       - Command tree syncing to the main guild

    2. on_ready:
       - Tebex client (when a secret is configured)
       - Ticket service and registry recovery
       - Opener panel
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        self.config = get_config()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        self.db = get_db()
        self.start_time: datetime = datetime.now()

        self.ticket_service: Optional[TicketService] = None
        self.tebex_client: Optional[TebexClient] = None

        self._ready_initialized: bool = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Load cogs, register persistent components and sync commands."""
        from src.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.info(f"Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        from src.events import EVENT_COGS
        for cog in EVENT_COGS:
            try:
                await self.load_extension(cog)
                logger.debug(f"Event Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Event Cog", [("Cog", cog), ("Error", str(e))])

        setup_ticket_views(self)

        guild = discord.Object(id=self.config.main_guild_id)
        try:
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.tree("Commands Synced", [
                ("Guild", str(self.config.main_guild_id)),
                ("Count", str(len(synced))),
            ], emoji="✅")
        except discord.HTTPException as e:
            logger.error("Command Sync Failed", [("Error", str(e))])

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        """Start the ticket service once the gateway is ready."""
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
        ], emoji="🚀")

        if self.config.error_webhook_url:
            logger.set_webhook(self.config.error_webhook_url)

        await self._init_services()
        await refresh_ticket_panel(self)

        logger.tree("TICKETEER READY", [
            ("Open Tickets", str(len(self.ticket_service.registry)) if self.ticket_service else "0"),
            ("Verification", "Enabled" if self.tebex_client else "Disabled"),
        ], emoji="🎫")

    # =========================================================================
    # Service Initialization
    # =========================================================================

    async def _init_services(self) -> None:
        """Build the ticket service and rebuild its registry."""
        if self.config.tebex_secret:
            self.tebex_client = TebexClient(self.config.tebex_secret)

        self.ticket_service = TicketService(
            platform=DiscordPlatform(self),
            registry=TicketRegistry(),
            verifier=self.tebex_client,
            db=self.db,
            config=self.config,
            scheduler=DeferredTaskScheduler(),
        )
        await self.ticket_service.start()

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup."""
        logger.info("Initiating Graceful Shutdown")

        if self.ticket_service:
            await self.ticket_service.stop()

        if self.tebex_client:
            await self.tebex_client.close()

        self.db.close()
        await logger.close()
        await super().close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now() - self.start_time)),
        ], emoji="🛑")

    async def close(self) -> None:
        """Override close to ensure proper shutdown."""
        await self.shutdown()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["TicketeerBot"]
