"""
Ticketeer - Discord Rate Limit Utilities
========================================

HTTP error logging and retries for Discord sends.

Usage:
    from src.utils.discord_rate_limit import log_http_error, with_rate_limit_retry

    @with_rate_limit_retry()
    async def post(channel, content):
        await channel.send(content)

DESIGN:
    Only 429s and 5xx responses are retried. 403/404 mean the channel or
    member is gone or locked down, and retrying cannot change that, so
    they surface at once to the caller (the closure fan-out records them
    as failed destinations).
"""

import asyncio
import random
from functools import wraps
from typing import Any, Callable, List, Optional, Tuple

import discord

from src.core.logger import logger


# =============================================================================
# Configuration
# =============================================================================

class RateLimitConfig:
    """Retry limits for Discord calls."""
    MAX_RETRIES: int = 3
    BASE_DELAY: float = 1.0   # seconds, doubled per attempt
    MAX_DELAY: float = 30.0   # longer waits are not worth holding an interaction for
    JITTER: float = 0.1       # fraction of the delay


HTTP_STATUS_DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


# =============================================================================
# Logging Helper
# =============================================================================

def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[List[Tuple[str, str]]] = None,
) -> None:
    """
    Log a failed Discord call.

    Missing and forbidden targets are warnings (a deleted channel, a
    member with DMs closed); everything else is an error.
    """
    items = [
        ("Status", f"{e.status} ({HTTP_STATUS_DESCRIPTIONS.get(e.status, 'Unknown')})"),
        ("Error", (getattr(e, "text", None) or str(e))[:200]),
    ]
    items.extend(context or [])

    titles = {429: "Rate Limited", 403: "Forbidden", 404: "Not Found"}
    if e.status in titles:
        logger.warning(f"{operation} {titles[e.status]}", items)
    else:
        logger.error(f"{operation} Failed", items)


# =============================================================================
# Retry Decorator
# =============================================================================

def retry_delay(e: discord.HTTPException, attempt: int, base_delay: float) -> Optional[float]:
    """
    Seconds to wait before retrying a failed call, or None to give up.

    Discord's retry_after wins when present; otherwise exponential
    backoff with jitter.
    """
    if isinstance(e, discord.RateLimited):
        delay = e.retry_after + 0.5
    elif e.status == 429 or e.status >= 500:
        retry_after = getattr(e, "retry_after", None)
        delay = retry_after + 0.5 if retry_after else base_delay * (2 ** attempt)
        delay += random.uniform(0, delay * RateLimitConfig.JITTER)
    else:
        return None
    return delay if delay < RateLimitConfig.MAX_DELAY else None


def with_rate_limit_retry(
    max_retries: int = RateLimitConfig.MAX_RETRIES,
    base_delay: float = RateLimitConfig.BASE_DELAY,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Retry a coroutine on Discord rate limits and server errors."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except (discord.RateLimited, discord.HTTPException) as e:
                    attempt += 1
                    delay = retry_delay(e, attempt - 1, base_delay)
                    if delay is None or attempt >= max_retries:
                        raise
                    logger.warning("Discord Call Retrying", [
                        ("Function", func.__name__),
                        ("Attempt", f"{attempt}/{max_retries}"),
                        ("Status", str(getattr(e, "status", 429))),
                        ("Retry In", f"{delay:.1f}s"),
                    ])
                    await asyncio.sleep(delay)

        return wrapper

    return decorator


__all__ = [
    "RateLimitConfig",
    "HTTP_STATUS_DESCRIPTIONS",
    "log_http_error",
    "retry_delay",
    "with_rate_limit_retry",
]
