"""
Ticketeer - Database Module
===========================

Centralized database management for tickets, categories and logs.
"""

from src.core.database.manager import (
    DatabaseManager,
    get_db,
    DATA_DIR,
    DB_PATH,
)
from src.core.database.models import (
    CategoryRecord,
    CategoryFieldRecord,
    TicketRecord,
    TicketMessageRecord,
    TicketMemberRecord,
)

__all__ = [
    "DatabaseManager",
    "get_db",
    "DATA_DIR",
    "DB_PATH",
    "CategoryRecord",
    "CategoryFieldRecord",
    "TicketRecord",
    "TicketMessageRecord",
    "TicketMemberRecord",
]
