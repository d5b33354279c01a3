"""
Ticketeer - Async Utilities
===========================

Error-logged wrappers for side effects that must not abort the
operation that triggered them.

Usage:
    from src.utils.async_utils import safe_async_operation, create_safe_task

    # A failed notice is logged and reported as False
    sent = await safe_async_operation("Post Notice", channel.send(...), default=False)

    # Background work whose failure would otherwise go unnoticed
    create_safe_task(delete_later(channel), "Delete Channel")
"""

import asyncio
from typing import Any, Coroutine

from src.core.logger import logger


# =============================================================================
# Guarded Operations
# =============================================================================

async def safe_async_operation(
    name: str,
    coro: Coroutine[Any, Any, Any],
    default: Any = None,
    log_level: str = "warning",
) -> Any:
    """
    Await one coroutine, logging any exception instead of raising it.

    Args:
        name: Operation name shown in the log.
        coro: The coroutine to await.
        default: Value returned when the coroutine raises.
        log_level: "debug", "warning" or "error".

    Returns:
        The coroutine's result, or default on failure.
    """
    try:
        return await coro
    except Exception as e:
        details = [
            ("Operation", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:100]),
        ]
        log = {"debug": logger.debug, "error": logger.error}.get(log_level, logger.warning)
        log("Async Operation Failed", details)
        return default


# =============================================================================
# Background Tasks
# =============================================================================

def create_safe_task(
    coro: Coroutine[Any, Any, Any],
    name: str = "Background Task",
) -> asyncio.Task:
    """
    Schedule a coroutine as a task that logs its own failure.

    Cancellation is not treated as a failure.
    """
    async def wrapped() -> None:
        try:
            await coro
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Background Task Failed", [
                ("Task", name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])

    return asyncio.create_task(wrapped(), name=name)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "safe_async_operation",
    "create_safe_task",
]
