"""
Ticketeer - Closure Workflow Tests
==================================

Tests for closing tickets, archival fan-out and channel deletion.
"""

import sqlite3

import pytest

from src.services.tickets.closure import CLOSE_CANCELLED_MESSAGE, CLOSE_CONFIRMED_MESSAGE
from src.services.tickets.models import SubmissionStatus, TicketState
from src.services.tickets.results import ErrorKind, Outcome
from src.services.tickets.scheduler import JobStatus
from src.services.tickets.transcript import extract_embeds

TRANSCRIPT_CHANNEL_ID = 500


async def _open(service, requester, category):
    result = await service.open_ticket("open-interaction", requester, category["id"])
    assert result.is_ok
    return result.value


class TestCloseTicket:
    """Tests for close_ticket."""

    @pytest.mark.asyncio
    async def test_close_persists_and_unregisters(self, service, test_db, requester, staff, general_category):
        """Test the row is closed with its closure entry and the ticket leaves the registry."""
        ticket = await _open(service, requester, general_category)

        result = await service.close_ticket(ticket.channel_id, staff, "resolved")

        assert result.is_ok
        report = result.value
        assert report.ticket_id == ticket.ticket_id
        assert report.transcript_generated is True
        assert ticket.state is TicketState.CLOSED
        assert ticket.channel_id not in service.registry

        row = test_db.get_ticket(ticket.ticket_id)
        assert row["closed_at"] is not None
        last = test_db.get_ticket_messages(ticket.ticket_id)[-1]
        assert last["author_id"] == staff.id
        _, embeds = extract_embeds(last["content"])
        assert embeds[0]["description"] == "Closure reason:\n> resolved"

    @pytest.mark.asyncio
    async def test_close_happens_once(self, service, test_db, requester, staff, general_category):
        """Test a second close reports the channel is no longer a ticket."""
        ticket = await _open(service, requester, general_category)

        first = await service.close_ticket(ticket.channel_id, staff)
        second = await service.close_ticket(ticket.channel_id, staff)

        assert first.is_ok
        assert second.kind is ErrorKind.CHANNEL_NOT_TICKET
        assert len(test_db.get_ticket_messages(ticket.ticket_id)) == 1

    @pytest.mark.asyncio
    async def test_unknown_channel(self, service, staff):
        """Test closing a channel without a ticket."""
        result = await service.close_ticket(12345, staff)
        assert result.kind is ErrorKind.CHANNEL_NOT_TICKET

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_ticket_open(
        self, service, test_db, requester, staff, general_category, monkeypatch
    ):
        """Test a failed close transaction leaves the ticket registered and open."""
        ticket = await _open(service, requester, general_category)

        def fail(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(test_db, "close_ticket", fail)

        result = await service.close_ticket(ticket.channel_id, staff)

        assert result.kind is ErrorKind.PERSISTENCE_FAILED
        assert ticket.state is TicketState.OPEN
        assert service.registry.get(ticket.channel_id) is ticket


class TestArchivalFanOut:
    """Tests for the post-closure deliveries."""

    @pytest.mark.asyncio
    async def test_archive_and_dm(self, service, platform, requester, staff, general_category):
        """Test the archive gets the transcript and the owner gets a DM."""
        ticket = await _open(service, requester, general_category)

        report = (await service.close_ticket(ticket.channel_id, staff, "done")).value

        assert report.failed_destinations == ()
        archive = platform.sent_to(TRANSCRIPT_CHANNEL_ID)
        assert len(archive) == 1
        assert archive[0].files[0].filename == f"ticket-{ticket.ticket_id}-transcript.html"
        assert archive[0].embeds[0]["title"] == f"📋 Ticket #{ticket.ticket_id} Closed"

        assert [user_id for user_id, _ in platform.direct_messages] == [requester.id]
        dm = platform.direct_messages[0][1]
        assert dm.files[0].content == archive[0].files[0].content

        notice = platform.sent_to(ticket.channel_id)[-1]
        assert notice.embeds[0]["title"] == "Ticket closed"

    @pytest.mark.asyncio
    async def test_no_dm_when_owner_closes(self, service, platform, requester, general_category):
        """Test the owner closing their own ticket gets no DM."""
        ticket = await _open(service, requester, general_category)

        report = (await service.close_ticket(ticket.channel_id, requester)).value

        assert platform.direct_messages == []
        assert report.failed_destinations == ()

    @pytest.mark.asyncio
    async def test_failed_destination_does_not_block_others(
        self, service, platform, requester, staff, general_category
    ):
        """Test one failed delivery is reported and the rest still happen."""
        ticket = await _open(service, requester, general_category)
        platform.failing_destinations.add(TRANSCRIPT_CHANNEL_ID)

        result = await service.close_ticket(ticket.channel_id, staff)

        assert result.is_ok
        assert result.value.failed_destinations == ("Archive Channel",)
        assert len(platform.direct_messages) == 1
        assert ticket.channel_id not in service.registry

    @pytest.mark.asyncio
    async def test_blocked_dm_reported(self, service, platform, requester, staff, general_category):
        """Test an owner with closed DMs is a fan-out failure only."""
        ticket = await _open(service, requester, general_category)
        platform.failing_destinations.add(requester.id)

        result = await service.close_ticket(ticket.channel_id, staff)

        assert result.is_ok
        assert result.value.failed_destinations == ("Requester DM",)

    @pytest.mark.asyncio
    async def test_staff_transcript_only_with_discussion(
        self, service, platform, requester, staff, general_category
    ):
        """Test the staff thread is archived only past its seed message."""
        ticket = await _open(service, requester, general_category)
        platform.thread_messages[ticket.staff_thread_id] = [
            {"id": 1, "author_id": 999, "display_name": "Ticketeer", "avatar": None,
             "content": "<@&77>", "sent_at": 10.0},
            {"id": 2, "author_id": 222, "display_name": "Moderator", "avatar": None,
             "content": "Looks like a chargeback", "sent_at": 20.0},
        ]

        await service.close_ticket(ticket.channel_id, staff)

        archive = platform.sent_to(TRANSCRIPT_CHANNEL_ID)
        assert len(archive) == 2
        evidence = archive[1]
        assert evidence.files[0].filename == f"ticket-{ticket.ticket_id}-staff-evidence.html"
        assert "Looks like a chargeback" in evidence.files[0].content

    @pytest.mark.asyncio
    async def test_seed_only_thread_skipped(self, service, platform, requester, staff, general_category):
        """Test a thread holding only the seed message is not archived."""
        ticket = await _open(service, requester, general_category)
        platform.thread_messages[ticket.staff_thread_id] = [
            {"id": 1, "author_id": 999, "display_name": "Ticketeer", "avatar": None,
             "content": "<@&77>", "sent_at": 10.0},
        ]

        await service.close_ticket(ticket.channel_id, staff)

        assert len(platform.sent_to(TRANSCRIPT_CHANNEL_ID)) == 1


class TestChannelDeletion:
    """Tests for deferred channel deletion."""

    @pytest.mark.asyncio
    async def test_channel_deleted_after_close(self, service, platform, requester, staff, general_category):
        """Test the deletion job runs and removes the channel."""
        ticket = await _open(service, requester, general_category)

        report = (await service.close_ticket(ticket.channel_id, staff)).value
        assert report.deletion_job.key == f"delete-channel:{ticket.channel_id}"

        await report.deletion_job.wait()

        assert report.deletion_job.status is JobStatus.DONE
        assert platform.deleted == [ticket.channel_id]

    @pytest.mark.asyncio
    async def test_deletion_failure_recorded(self, service, platform, requester, staff, general_category):
        """Test a failed deletion is kept on the job and the close still succeeded."""
        ticket = await _open(service, requester, general_category)
        platform.failing.add("delete_channel")

        result = await service.close_ticket(ticket.channel_id, staff)
        await result.value.deletion_job.wait()

        assert result.is_ok
        assert result.value.deletion_job.status is JobStatus.FAILED
        assert platform.deleted == []


class TestRequestClose:
    """Tests for request_close."""

    @pytest.mark.asyncio
    async def test_outsider_not_authorized(self, service, platform, requester, outsider, general_category):
        """Test someone other than the owner or staff cannot close."""
        ticket = await _open(service, requester, general_category)

        result = await service.request_close("close-interaction", ticket.channel_id, outsider, reason="bye")

        assert result.kind is ErrorKind.NOT_AUTHORIZED
        assert ticket.channel_id in service.registry
        assert platform.responses[-1] == ("close-interaction", result.user_message)

    @pytest.mark.asyncio
    async def test_not_a_ticket(self, service, platform, staff):
        """Test a close request from an ordinary channel."""
        result = await service.request_close("close-interaction", 12345, staff, reason="x")

        assert result.kind is ErrorKind.CHANNEL_NOT_TICKET
        assert platform.responses == [("close-interaction", "This channel is not an open ticket.")]

    @pytest.mark.asyncio
    async def test_reason_given_skips_form(self, service, platform, requester, general_category):
        """Test a reason from /close closes without prompting."""
        ticket = await _open(service, requester, general_category)

        result = await service.request_close("close-interaction", ticket.channel_id, requester, reason="fixed")

        assert result.is_ok
        assert platform.forms == []
        assert platform.responses[-1] == ("close-interaction", CLOSE_CONFIRMED_MESSAGE)

    @pytest.mark.asyncio
    async def test_form_reason_used(self, service, platform, test_db, requester, general_category):
        """Test the reason typed into the close form is recorded."""
        ticket = await _open(service, requester, general_category)
        platform.submission_values = {"reason": "  all good  "}

        result = await service.request_close("close-interaction", ticket.channel_id, requester)

        assert result.is_ok
        assert platform.forms[-1].custom_id == f"collector-closeticket-{ticket.channel_id}"
        assert platform.responses[-1] == ("modal-interaction", CLOSE_CONFIRMED_MESSAGE)
        _, embeds = extract_embeds(test_db.get_ticket_messages(ticket.ticket_id)[-1]["content"])
        assert embeds[0]["description"] == "Closure reason:\n> all good"

    @pytest.mark.asyncio
    async def test_form_dismissed(self, service, platform, test_db, requester, general_category):
        """Test dismissing the close form leaves the ticket open."""
        ticket = await _open(service, requester, general_category)
        platform.submission_status = SubmissionStatus.CANCELLED

        result = await service.request_close("close-interaction", ticket.channel_id, requester)

        assert result.outcome is Outcome.CANCELLED
        assert ticket.state is TicketState.OPEN
        assert test_db.get_ticket(ticket.ticket_id)["closed_at"] is None
        assert platform.responses[-1] == ("modal-interaction", CLOSE_CANCELLED_MESSAGE)

    @pytest.mark.asyncio
    async def test_form_timeout(self, service, platform, requester, general_category):
        """Test an unanswered close form."""
        ticket = await _open(service, requester, general_category)
        platform.submission_status = SubmissionStatus.TIMEOUT

        result = await service.request_close("close-interaction", ticket.channel_id, requester)

        assert result.outcome is Outcome.TIMEOUT
        assert ticket.channel_id in service.registry
