"""
Ticketeer - Recovery Tests
==========================

Tests for rebuilding the registry from open tickets on startup.
"""

import sqlite3

import pytest

from src.services.tickets.models import ChannelHandle, TicketState
from src.services.tickets.transcript import extract_embeds


BOT_USER_ID = 999


def _open_row(db, category_id, channel_id, user_id=111):
    return db.create_ticket(
        category_id=category_id,
        ticket_name=f"user-{user_id}",
        channel_id=channel_id,
        user_id=user_id,
        user_username=f"user{user_id}",
        user_display_name=f"User {user_id}",
        opened_at=1_700_000_000.0,
    )


class TestReloadTickets:
    """Tests for reload_tickets."""

    @pytest.mark.asyncio
    async def test_existing_channels_restored(self, service, platform, test_db, general_category):
        """Test every open ticket with a live channel is registered."""
        for channel_id in (6001, 6002):
            _open_row(test_db, general_category["id"], channel_id)
            platform.channels[channel_id] = ChannelHandle(id=channel_id, name=f"ticket-{channel_id}")

        report = await service.reload_tickets()

        assert report.restored == 2
        assert report.closed == 0
        ticket = service.registry.get(6001)
        assert ticket.state is TicketState.OPEN
        assert ticket.category_name == "General"
        assert ticket.channel_name == "ticket-6001"
        assert ticket.requester.username == "user111"

    @pytest.mark.asyncio
    async def test_missing_channels_force_closed(self, service, platform, test_db, general_category):
        """Test tickets whose channel is gone are closed by the bot."""
        kept = _open_row(test_db, general_category["id"], 6001)
        orphan = _open_row(test_db, general_category["id"], 6002, user_id=112)
        platform.channels[6001] = ChannelHandle(id=6001, name="ticket-6001")
        platform.missing_channels.add(6002)

        report = await service.reload_tickets()

        assert (report.restored, report.closed) == (1, 1)
        assert 6002 not in service.registry
        assert test_db.get_ticket(kept)["closed_at"] is None
        assert test_db.get_ticket(orphan)["closed_at"] is not None

        entry = test_db.get_ticket_messages(orphan)[-1]
        assert entry["author_id"] == BOT_USER_ID
        _, embeds = extract_embeds(entry["content"])
        assert embeds[0]["title"] == "Ticket closed"

    @pytest.mark.asyncio
    async def test_lookup_errors_force_close(self, service, platform, test_db, general_category):
        """Test a channel that cannot be resolved is closed rather than left unreachable."""
        ticket_id = _open_row(test_db, general_category["id"], 6001)
        _open_row(test_db, general_category["id"], 6002, user_id=112)
        platform.broken_channels.add(6001)
        platform.channels[6002] = ChannelHandle(id=6002, name="ticket-6002")

        report = await service.reload_tickets()

        assert (report.restored, report.closed, report.failed) == (1, 1, 0)
        assert 6001 not in service.registry
        assert test_db.get_ticket(ticket_id)["closed_at"] is not None
        assert test_db.get_ticket_messages(ticket_id)[-1]["author_id"] == BOT_USER_ID

    @pytest.mark.asyncio
    async def test_restore_failure_isolated(
        self, service, platform, test_db, general_category, billing_category, monkeypatch
    ):
        """Test one ticket failing to restore does not stop the others."""
        _open_row(test_db, billing_category["id"], 6001)
        _open_row(test_db, general_category["id"], 6002, user_id=112)
        for channel_id in (6001, 6002):
            platform.channels[channel_id] = ChannelHandle(id=channel_id, name=f"ticket-{channel_id}")

        real_get_category = test_db.get_category

        def get_category(category_id):
            if category_id == billing_category["id"]:
                raise sqlite3.OperationalError("database is locked")
            return real_get_category(category_id)

        monkeypatch.setattr(test_db, "get_category", get_category)

        report = await service.reload_tickets()

        assert (report.restored, report.failed) == (1, 1)
        assert 6001 not in service.registry
        assert 6002 in service.registry

    @pytest.mark.asyncio
    async def test_closed_tickets_ignored(self, service, platform, test_db, general_category):
        """Test only open rows are considered."""
        ticket_id = _open_row(test_db, general_category["id"], 6001)
        test_db.close_ticket(ticket_id, 222, "Moderator", None, "closed")
        platform.channels[6001] = ChannelHandle(id=6001, name="ticket-6001")

        report = await service.reload_tickets()

        assert report.restored == 0
        assert len(service.registry) == 0

    @pytest.mark.asyncio
    async def test_start_reloads(self, service, platform, test_db, general_category):
        """Test start rebuilds the registry."""
        _open_row(test_db, general_category["id"], 6001)
        platform.channels[6001] = ChannelHandle(id=6001, name="ticket-6001")

        await service.start()

        assert 6001 in service.registry
        await service.stop()

    @pytest.mark.asyncio
    async def test_reload_is_repeatable(self, service, platform, test_db, general_category):
        """Test a second pass does not register tickets twice."""
        _open_row(test_db, general_category["id"], 6001)
        platform.channels[6001] = ChannelHandle(id=6001, name="ticket-6001")

        await service.reload_tickets()
        second = await service.reload_tickets()

        assert second.restored == 0
        assert len(service.registry) == 1
