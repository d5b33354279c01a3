"""
Ticketeer - Deferred Task Scheduler
===================================

Delayed, cancellable background jobs (ticket channel deletion).

DESIGN:
    Each job is keyed (one pending job per key, rescheduling replaces
    the old one) and tracked as a ScheduledJob. The job records its own
    status and error, so a failed deletion is visible to whoever holds
    the job instead of vanishing inside the event loop. Finished jobs are
    not retained; tests await the returned job.wait().
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from src.core.logger import logger
from src.utils.async_utils import create_safe_task


class JobStatus(Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ScheduledJob:
    """
    One deferred action.

    Attributes:
        key: Deduplication key.
        name: Human readable name for logs.
        delay: Seconds between scheduling and running.
        scheduled_at: time.time() when scheduled.
        status: Current status.
        error: Exception raised by the action, if it failed.
    """

    key: str
    name: str
    delay: float
    scheduled_at: float = field(default_factory=time.time)
    status: JobStatus = JobStatus.PENDING
    error: Optional[BaseException] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.status is not JobStatus.PENDING

    def cancel(self) -> bool:
        """Cancel the job if it has not run yet. Returns True if cancelled."""
        if self.done:
            return False
        self.status = JobStatus.CANCELLED
        if self.task and not self.task.done():
            self.task.cancel()
        return True

    async def wait(self) -> "ScheduledJob":
        """Wait for the job to finish, whatever the outcome."""
        if self.task is not None:
            await asyncio.gather(self.task, return_exceptions=True)
        return self


class DeferredTaskScheduler:
    """Keyed scheduler of delayed coroutines."""

    def __init__(self) -> None:
        self._pending: Dict[str, ScheduledJob] = {}

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule(
        self,
        key: str,
        action: Callable[[], Awaitable[Any]],
        delay: float,
        name: Optional[str] = None,
    ) -> ScheduledJob:
        """
        Run `action()` after `delay` seconds.

        Args:
            key: Deduplication key; a pending job with the same key is cancelled.
            action: Zero-argument coroutine factory.
            delay: Seconds to wait before running.
            name: Name for logs, defaults to the key.

        Returns:
            The ScheduledJob handle.
        """
        self.cancel(key)

        job = ScheduledJob(key=key, name=name or key, delay=max(0.0, delay))
        job.task = create_safe_task(self._run(job, action), job.name)
        self._pending[key] = job

        logger.debug("Deferred Task Scheduled", [
            ("Task", job.name),
            ("Delay", f"{job.delay}s"),
        ])
        return job

    async def _run(self, job: ScheduledJob, action: Callable[[], Awaitable[Any]]) -> None:
        try:
            await asyncio.sleep(job.delay)
            if job.status is not JobStatus.PENDING:
                return
            await action()
            job.status = JobStatus.DONE
            logger.debug("Deferred Task Completed", [("Task", job.name)])
        except asyncio.CancelledError:
            job.status = JobStatus.CANCELLED
            raise
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = e
            logger.error("Deferred Task Failed", [
                ("Task", job.name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])
        finally:
            if self._pending.get(job.key) is job:
                self._pending.pop(job.key, None)

    # =========================================================================
    # Control
    # =========================================================================

    def get(self, key: str) -> Optional[ScheduledJob]:
        """Pending job for a key, if any."""
        return self._pending.get(key)

    def pending(self) -> List[ScheduledJob]:
        return list(self._pending.values())

    def cancel(self, key: str) -> bool:
        """Cancel the pending job for a key. Returns True if one was cancelled."""
        job = self._pending.pop(key, None)
        if job is None:
            return False
        cancelled = job.cancel()
        if cancelled:
            logger.debug("Deferred Task Cancelled", [("Task", job.name)])
        return cancelled

    async def stop(self) -> int:
        """Cancel every pending job and wait for them to unwind."""
        jobs = list(self._pending.values())
        for job in jobs:
            self.cancel(job.key)
        for job in jobs:
            await job.wait()
        if jobs:
            logger.info("Deferred Tasks Cancelled", [("Count", str(len(jobs)))])
        return len(jobs)


__all__ = [
    "JobStatus",
    "ScheduledJob",
    "DeferredTaskScheduler",
]
