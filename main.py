#!/usr/bin/env python3
"""
Ticketeer - Discord Ticket Bot Entry Point
==========================================

Loads the environment, validates configuration and runs the bot.
"""

import asyncio
import sys

import discord
from dotenv import load_dotenv

# Before src imports: the logger reads LOG_DIR at import time
load_dotenv()

from src.core.config import ConfigValidationError, validate_and_log_config
from src.core.logger import logger


async def main() -> None:
    """
    Main entry point for Ticketeer.

    Handles the complete bot lifecycle:
    1. Validates required settings
    2. Runs the bot until interrupted

    Raises:
        SystemExit: If configuration is invalid or the bot cannot log in
    """
    try:
        config = validate_and_log_config()
    except ConfigValidationError as e:
        logger.critical("Invalid Configuration", [("Error", str(e))])
        sys.exit(1)

    from src.bot import TicketeerBot

    bot = TicketeerBot()
    try:
        async with bot:
            await bot.start(config.discord_token)
    except (discord.LoginFailure, discord.PrivilegedIntentsRequired) as e:
        logger.critical("Discord Login Failed", [
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:200]),
        ])
        sys.exit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")
    except Exception as e:
        logger.critical("Startup Failed", [
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:200]),
        ])
        sys.exit(1)
