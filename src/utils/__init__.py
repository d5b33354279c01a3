"""
Ticketeer - Utils Package
=========================

Stateless helpers shared by services and cogs.

Available Utilities:
    async_utils: Guarded awaits and self-logging background tasks
    discord_rate_limit: HTTP error logging and rate limit retries
"""

# =============================================================================
# Utility Imports
# =============================================================================

from .async_utils import create_safe_task, safe_async_operation
from .discord_rate_limit import (
    HTTP_STATUS_DESCRIPTIONS,
    RateLimitConfig,
    log_http_error,
    retry_delay,
    with_rate_limit_retry,
)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # Async
    "create_safe_task",
    "safe_async_operation",
    # Rate limits
    "HTTP_STATUS_DESCRIPTIONS",
    "RateLimitConfig",
    "log_http_error",
    "retry_delay",
    "with_rate_limit_retry",
]
