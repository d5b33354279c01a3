"""
Ticketeer - Source Package
==========================

Support ticket bot: category-driven intake forms, purchase verification,
private ticket channels and HTML transcripts on closure.

Package Structure:
- bot.py: Discord bot class, cog loading and service wiring
- commands/: Slash commands (categories, fields, participants, transcripts)
- core/: Configuration, logging and the sqlite database
- events/: Gateway event listeners (message logging)
- services/: Ticket lifecycle and Tebex verification
- utils/: Async and Discord error helpers

Version: v1.0.0
"""
