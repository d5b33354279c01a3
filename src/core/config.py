"""
Ticketeer - Configuration Module
================================

Centralized configuration management with environment variable validation.

DESIGN:
    One source of truth for configuration, loaded from environment
    variables at startup (main.py calls load_dotenv first). The dataclass
    is built once by get_config() and reused by every service and cog.

    Key patterns:
    - Singleton via get_config()
    - Validation happens once at load time, not on every access
    - Staff checks centralized in is_ticket_staff()
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Set
from zoneinfo import ZoneInfo

from src.core.constants import FORM_TIMEOUT, CHANNEL_DELETE_DELAY, MS_PER_SECOND


# =============================================================================
# Timezone Configuration
# =============================================================================

NY_TZ = ZoneInfo("America/New_York")
"""Eastern timezone used for logs and transcript timestamps."""


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        discord_token: Discord bot authentication token.
        main_guild_id: Guild the bot serves and syncs commands to.
        ticket_opener_channel_id: Channel holding the ticket opener panel.
        transcript_channel_id: Archive channel for closed-ticket transcripts.
        staff_role_ids: Roles treated as ticket staff.
        tebex_secret: Secret for Tebex purchase verification.
        error_webhook_url: Webhook for error alerts.
        form_timeout: Seconds to wait for an intake or close form.
        channel_delete_delay: Seconds between closure and channel deletion.
    """

    # -------------------------------------------------------------------------
    # Required: Discord
    # -------------------------------------------------------------------------

    discord_token: str
    main_guild_id: int

    # -------------------------------------------------------------------------
    # Optional: Channels
    # -------------------------------------------------------------------------

    ticket_opener_channel_id: Optional[int] = None
    transcript_channel_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Roles
    # -------------------------------------------------------------------------

    staff_role_ids: Set[int] = field(default_factory=set)

    # -------------------------------------------------------------------------
    # Optional: Integrations
    # -------------------------------------------------------------------------

    tebex_secret: Optional[str] = None
    error_webhook_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Timing
    # -------------------------------------------------------------------------

    form_timeout: float = float(FORM_TIMEOUT)
    channel_delete_delay: float = CHANNEL_DELETE_DELAY


# =============================================================================
# Embed Colors
# =============================================================================

class EmbedColors:
    """Standardized color palette for Discord embeds."""

    GREEN = 0x1F5E2E
    GOLD = 0xE6B84A
    RED = 0xDC3545
    BLUE = 0x3498DB
    BLURPLE = 0x5865F2

    # Semantic aliases
    SUCCESS = GREEN
    ERROR = RED
    WARNING = GOLD
    INFO = BLUE
    TICKET = BLURPLE
    CLOSED = RED
    PANEL = BLURPLE


# =============================================================================
# Environment Readers
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _warn(message: str) -> None:
    # Imported lazily: the logger module must not depend on config
    from src.core.logger import logger
    logger.warning(message)


def _env_id(name: str) -> Optional[int]:
    """Optional Discord snowflake. A malformed value is reported and ignored."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    if not raw.isdigit():
        _warn(f"Config {name}='{raw}' is not an id, ignoring")
        return None
    return int(raw)


def _env_id_set(name: str) -> Set[int]:
    """Comma separated snowflakes, e.g. STAFF_ROLE_IDS=123,456. Bad entries are skipped."""
    ids = set()
    for part in (os.getenv(name) or "").split(","):
        part = part.strip()
        if part.isdigit():
            ids.add(int(part))
        elif part:
            _warn(f"Config {name} entry '{part}' is not an id, skipping")
    return ids


def _env_bounded(name: str, default: int, lower: int, upper: int) -> int:
    """Integer clamped to [lower, upper]; unset or unparsable gives the default."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        _warn(f"Config {name}='{raw}' invalid, using default {default}")
        return default
    clamped = min(max(value, lower), upper)
    if clamped != value:
        _warn(f"Config {name}={value} outside {lower}..{upper}, using {clamped}")
    return clamped


def _env_url(name: str) -> Optional[str]:
    """Optional http(s) URL."""
    raw = (os.getenv(name) or "").strip()
    if raw and not raw.startswith(("https://", "http://")):
        _warn(f"Config {name} is not an http(s) URL, ignoring")
        return None
    return raw or None


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Build a Config from the process environment.

    DISCORD_TOKEN and MAIN_GUILD_ID are required; both are checked before
    raising so one error names everything that is missing. Every other
    setting degrades to a default with a warning.

    Raises:
        ConfigValidationError: Missing token, or missing/non-numeric guild id.
    """
    token = (os.getenv("DISCORD_TOKEN") or "").strip()
    guild = (os.getenv("MAIN_GUILD_ID") or "").strip()

    missing = [name for name, value in (("DISCORD_TOKEN", token), ("MAIN_GUILD_ID", guild)) if not value]
    if missing:
        raise ConfigValidationError(f"Missing required environment variables: {', '.join(missing)}")
    if not guild.isdigit():
        raise ConfigValidationError(f"MAIN_GUILD_ID must be a numeric id, got '{guild}'")

    delete_delay_ms = _env_bounded(
        "CHANNEL_DELETE_DELAY_MS", int(CHANNEL_DELETE_DELAY * MS_PER_SECOND), 0, 60_000,
    )

    return Config(
        discord_token=token,
        main_guild_id=int(guild),
        ticket_opener_channel_id=_env_id("TICKET_OPENER_CHANNEL_ID"),
        transcript_channel_id=_env_id("TRANSCRIPT_CHANNEL_ID"),
        staff_role_ids=_env_id_set("STAFF_ROLE_IDS"),
        tebex_secret=(os.getenv("TEBEX_SECRET") or "").strip() or None,
        error_webhook_url=_env_url("ERROR_WEBHOOK_URL"),
        form_timeout=float(_env_bounded("FORM_TIMEOUT_SECONDS", FORM_TIMEOUT, 10, 300)),
        channel_delete_delay=delete_delay_ms / MS_PER_SECOND,
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def validate_and_log_config() -> Config:
    """
    Validate configuration and log a summary at startup.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    from src.core.logger import logger

    config = get_config()

    for var, value in (
        ("TICKET_OPENER_CHANNEL_ID", config.ticket_opener_channel_id),
        ("TRANSCRIPT_CHANNEL_ID", config.transcript_channel_id),
        ("TEBEX_SECRET", config.tebex_secret),
    ):
        if not value:
            logger.info(f"Optional config not set: {var}")

    logger.tree("Configuration Validated", [
        ("Guild", str(config.main_guild_id)),
        ("Opener Channel", str(config.ticket_opener_channel_id or "None")),
        ("Transcript Channel", str(config.transcript_channel_id or "None")),
        ("Staff Roles", str(len(config.staff_role_ids))),
        ("Verification", "Enabled" if config.tebex_secret else "Disabled"),
        ("Form Timeout", f"{config.form_timeout:.0f}s"),
    ], emoji="⚙️")

    return config


# =============================================================================
# Permission Helpers
# =============================================================================

def is_ticket_staff(member, config: Optional[Config] = None) -> bool:
    """
    Check if a member counts as ticket staff.

    Args:
        member: Discord member object to check.
        config: Config to read staff roles from (defaults to global).

    Returns:
        True if member is an administrator, can manage channels,
        or holds a configured staff role.
    """
    if member is None:
        return False

    permissions = getattr(member, "guild_permissions", None)
    if permissions is not None and (permissions.administrator or permissions.manage_channels):
        return True

    config = config or get_config()
    role_ids = {role.id for role in getattr(member, "roles", [])}
    return bool(role_ids & config.staff_role_ids)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "load_config",
    "validate_and_log_config",
    "is_ticket_staff",
]
