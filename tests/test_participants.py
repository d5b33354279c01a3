"""
Ticketeer - Participant Tests
=============================

Tests for staff adding and removing ticket members.
"""

import pytest

from src.services.tickets.models import Requester
from src.services.tickets.results import ErrorKind


class TestAddParticipant:
    """Tests for add_participant."""

    @pytest.mark.asyncio
    async def test_staff_adds_member(self, service, platform, test_db, requester, staff, outsider, general_category):
        """Test access is granted, recorded and announced."""
        ticket = (await service.open_ticket("interaction", requester, general_category["id"])).value

        result = await service.add_participant(ticket.channel_id, outsider, staff)

        assert result.is_ok
        assert platform.access_changes == [(ticket.channel_id, outsider.id, True)]
        members = test_db.get_ticket_members(ticket.ticket_id)
        assert [(row["user_id"], row["added_by"]) for row in members] == [(outsider.id, staff.id)]
        notice = platform.sent_to(ticket.channel_id)[-1]
        assert notice.embeds[0]["description"] == "<@333> was added to the ticket by <@222>."

    @pytest.mark.asyncio
    async def test_non_staff_refused(self, service, platform, requester, outsider, general_category):
        """Test the owner cannot add members."""
        ticket = (await service.open_ticket("interaction", requester, general_category["id"])).value

        result = await service.add_participant(ticket.channel_id, outsider, requester)

        assert result.kind is ErrorKind.NOT_AUTHORIZED
        assert platform.access_changes == []

    @pytest.mark.asyncio
    async def test_bot_refused(self, service, platform, requester, staff, general_category):
        """Test bots are not valid participants."""
        ticket = (await service.open_ticket("interaction", requester, general_category["id"])).value
        bot = Requester(id=4242, username="helper", display_name="Helper", is_bot=True)

        result = await service.add_participant(ticket.channel_id, bot, staff)

        assert result.kind is ErrorKind.INVALID_PARTICIPANT
        assert platform.access_changes == []

    @pytest.mark.asyncio
    async def test_not_a_ticket(self, service, staff, outsider):
        """Test the channel must be an open ticket."""
        result = await service.add_participant(12345, outsider, staff)
        assert result.kind is ErrorKind.CHANNEL_NOT_TICKET

    @pytest.mark.asyncio
    async def test_platform_error(self, service, platform, test_db, requester, staff, outsider, general_category):
        """Test nothing is recorded when the permission change fails."""
        ticket = (await service.open_ticket("interaction", requester, general_category["id"])).value
        platform.failing.add("set_member_access")

        result = await service.add_participant(ticket.channel_id, outsider, staff)

        assert result.kind is ErrorKind.PROVISIONING_FAILED
        assert test_db.get_ticket_members(ticket.ticket_id) == []


class TestRemoveParticipant:
    """Tests for remove_participant."""

    @pytest.mark.asyncio
    async def test_staff_removes_member(self, service, platform, test_db, requester, staff, outsider, general_category):
        """Test access is revoked and the member row marked removed."""
        ticket = (await service.open_ticket("interaction", requester, general_category["id"])).value
        await service.add_participant(ticket.channel_id, outsider, staff)

        result = await service.remove_participant(ticket.channel_id, outsider, staff)

        assert result.is_ok
        assert platform.access_changes[-1] == (ticket.channel_id, outsider.id, False)
        assert test_db.get_ticket_members(ticket.ticket_id) == []
        assert test_db.get_ticket_members(ticket.ticket_id, include_removed=True)[0]["removed"] == 1

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed(self, service, platform, requester, staff, general_category):
        """Test the requester always keeps access."""
        ticket = (await service.open_ticket("interaction", requester, general_category["id"])).value

        result = await service.remove_participant(ticket.channel_id, requester, staff)

        assert result.kind is ErrorKind.INVALID_PARTICIPANT
        assert platform.access_changes == []
