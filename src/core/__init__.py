"""
Ticketeer - Core Package
========================

Configuration, logging and persistence shared by every service.

DESIGN:
    Core modules are singletons or global instances so all services
    see the same state:
    - get_config() returns the same Config instance
    - get_db() returns the same DatabaseManager instance
    - logger is the global TreeLogger instance
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import (
    Config,
    ConfigValidationError,
    EmbedColors,
    NY_TZ,
    get_config,
    is_ticket_staff,
)

from .database import DatabaseManager, get_db

from .logger import logger, TreeLogger


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # Config
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "is_ticket_staff",
    # Database
    "DatabaseManager",
    "get_db",
    # Logger
    "logger",
    "TreeLogger",
]
