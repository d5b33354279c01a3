"""
Ticketeer - Registry and Scheduler Tests
========================================

Tests for the open-ticket index and deferred channel deletion.
"""

import asyncio
import gc
import weakref

import pytest

from src.services.tickets.models import ActiveTicket, Requester
from src.services.tickets.registry import DuplicateTicketError, TicketRegistry
from src.services.tickets.scheduler import DeferredTaskScheduler, JobStatus


def _ticket(ticket_id: int, channel_id: int) -> ActiveTicket:
    return ActiveTicket(
        ticket_id=ticket_id,
        channel_id=channel_id,
        channel_name="alice",
        category_id=1,
        category_name="General",
        requester=Requester(id=111, username="alice", display_name="Alice"),
        opened_at=0.0,
    )


class TestTicketRegistry:
    """Tests for TicketRegistry."""

    def test_register_and_get(self):
        """Test a registered ticket is found by its channel."""
        registry = TicketRegistry()
        ticket = _ticket(1, 5000)
        registry.register(5000, ticket)

        assert registry.get(5000) is ticket
        assert 5000 in registry
        assert len(registry) == 1

    def test_duplicate_channel_rejected(self):
        """Test one channel cannot carry two tickets."""
        registry = TicketRegistry()
        registry.register(5000, _ticket(1, 5000))

        with pytest.raises(DuplicateTicketError):
            registry.register(5000, _ticket(2, 5000))
        assert registry.get(5000).ticket_id == 1

    def test_unregister(self):
        """Test unregistering returns the ticket once."""
        registry = TicketRegistry()
        registry.register(5000, _ticket(1, 5000))

        assert registry.unregister(5000).ticket_id == 1
        assert registry.unregister(5000) is None
        assert registry.get(5000) is None

    def test_independent_instances(self):
        """Test registries do not share state."""
        first = TicketRegistry()
        second = TicketRegistry()
        first.register(5000, _ticket(1, 5000))

        assert 5000 not in second


class TestDeferredTaskScheduler:
    """Tests for DeferredTaskScheduler."""

    @pytest.mark.asyncio
    async def test_job_runs_after_delay(self):
        """Test a scheduled action runs and is marked done."""
        scheduler = DeferredTaskScheduler()
        calls = []

        async def action():
            calls.append("ran")

        job = scheduler.schedule("delete-channel:1", action, delay=0)
        assert job.status is JobStatus.PENDING

        await job.wait()

        assert calls == ["ran"]
        assert job.status is JobStatus.DONE
        assert scheduler.get("delete-channel:1") is None

    @pytest.mark.asyncio
    async def test_finished_jobs_not_retained(self):
        """Test the scheduler lets go of jobs once they have run."""
        scheduler = DeferredTaskScheduler()
        refs = []

        async def action():
            pass

        for index in range(50):
            job = scheduler.schedule(f"delete-channel:{index}", action, delay=0)
            refs.append(weakref.ref(job))
            await job.wait()
        del job
        await asyncio.sleep(0)
        gc.collect()

        assert scheduler.pending() == []
        assert all(ref() is None for ref in refs)

    @pytest.mark.asyncio
    async def test_failure_is_recorded(self):
        """Test an exception is captured on the job instead of escaping."""
        scheduler = DeferredTaskScheduler()

        async def action():
            raise RuntimeError("Missing Permissions")

        job = scheduler.schedule("delete-channel:1", action, delay=0)
        await job.wait()

        assert job.status is JobStatus.FAILED
        assert isinstance(job.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_same_key_replaces_pending_job(self):
        """Test rescheduling a key cancels the earlier job."""
        scheduler = DeferredTaskScheduler()
        calls = []

        async def action(label):
            calls.append(label)

        first = scheduler.schedule("delete-channel:1", lambda: action("first"), delay=10)
        second = scheduler.schedule("delete-channel:1", lambda: action("second"), delay=0)
        await second.wait()
        await first.wait()

        assert first.status is JobStatus.CANCELLED
        assert second.status is JobStatus.DONE
        assert calls == ["second"]

    @pytest.mark.asyncio
    async def test_stop_cancels_pending(self):
        """Test stop cancels every pending job."""
        scheduler = DeferredTaskScheduler()

        async def action():
            pass

        job = scheduler.schedule("delete-channel:1", action, delay=10)
        await asyncio.sleep(0)

        assert await scheduler.stop() == 1
        assert job.status is JobStatus.CANCELLED
        assert scheduler.pending() == []
