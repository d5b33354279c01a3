"""
Ticketeer - Database Tests
==========================

Tests for the database layer to ensure data integrity.
"""

import sqlite3

import pytest


def _open_ticket(db, category_id, channel_id=5000, user_id=111, opened_at=1_700_000_000.0):
    return db.create_ticket(
        category_id=category_id,
        ticket_name="alice",
        channel_id=channel_id,
        user_id=user_id,
        user_username="alice",
        user_display_name="Alice",
        opened_at=opened_at,
    )


class TestCategories:
    """Tests for ticket category operations."""

    def test_add_and_get_category(self, test_db):
        """Test a created category can be read back by id and by name."""
        category_id = test_db.add_category("General", 400, description="Help", emoji="❓")

        by_id = test_db.get_category(category_id)
        by_name = test_db.get_category_by_name("General")

        assert by_id == by_name
        assert by_id["category_id"] == 400
        assert by_id["description"] == "Help"
        assert by_id["require_verification"] == 1

    def test_duplicate_name_returns_none(self, test_db):
        """Test category names are unique."""
        assert test_db.add_category("General", 400) is not None
        assert test_db.add_category("General", 401) is None

    def test_search_categories(self, test_db):
        """Test autocomplete search matches substrings."""
        test_db.add_category("Billing", 400)
        test_db.add_category("Bug Report", 400)
        test_db.add_category("General", 400)

        names = [category["name"] for category in test_db.search_categories("b")]
        assert names == ["Billing", "Bug Report"]

    def test_update_category_ignores_none(self, test_db):
        """Test update only touches the given columns."""
        category_id = test_db.add_category("General", 400, description="Old")

        assert test_db.update_category(category_id, description="New", emoji=None) is True
        category = test_db.get_category(category_id)
        assert category["description"] == "New"
        assert category["name"] == "General"

    def test_update_category_nothing_to_change(self, test_db):
        """Test an update without values reports no change."""
        category_id = test_db.add_category("General", 400)
        assert test_db.update_category(category_id) is False

    def test_update_category_to_taken_name_raises(self, test_db):
        """Test renaming onto an existing name is rejected."""
        test_db.add_category("General", 400)
        category_id = test_db.add_category("Billing", 400)

        with pytest.raises(sqlite3.IntegrityError):
            test_db.update_category(category_id, name="General")

    def test_delete_category_refused_with_tickets(self, test_db):
        """Test a category referenced by tickets is kept."""
        category_id = test_db.add_category("General", 400)
        _open_ticket(test_db, category_id)

        assert test_db.delete_category(category_id) is False
        assert test_db.get_category(category_id) is not None

    def test_delete_category_removes_fields(self, test_db):
        """Test deleting a category drops its fields."""
        category_id = test_db.add_category("General", 400)
        field_id = test_db.add_field(category_id, "Question")

        assert test_db.delete_category(category_id) is True
        assert test_db.get_field(field_id) is None


class TestFields:
    """Tests for category field operations."""

    def test_fields_in_creation_order(self, test_db):
        """Test fields come back in the order they were added."""
        category_id = test_db.add_category("General", 400)
        test_db.add_field(category_id, "First")
        test_db.add_field(category_id, "Second", required=False, short_field=False, max_length=200)

        fields = test_db.get_fields(category_id)
        assert [field["label"] for field in fields] == ["First", "Second"]
        assert fields[1]["required"] == 0
        assert fields[1]["short_field"] == 0
        assert fields[1]["max_length"] == 200
        assert test_db.count_fields(category_id) == 2

    def test_remove_field(self, test_db):
        """Test removing a field and removing it again."""
        category_id = test_db.add_category("General", 400)
        field_id = test_db.add_field(category_id, "Question")

        assert test_db.remove_field(field_id) is True
        assert test_db.remove_field(field_id) is False


class TestTickets:
    """Tests for ticket rows."""

    def test_create_ticket(self, test_db):
        """Test a new ticket is open and bound to its channel."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)

        ticket = test_db.get_ticket(ticket_id)
        assert ticket["closed_at"] is None
        assert ticket["user_username"] == "alice"
        assert test_db.get_open_ticket_by_channel(5000)["id"] == ticket_id
        assert [row["id"] for row in test_db.get_open_tickets()] == [ticket_id]

    def test_one_open_ticket_per_channel(self, test_db):
        """Test a channel cannot hold two open tickets."""
        category_id = test_db.add_category("General", 400)
        _open_ticket(test_db, category_id)

        with pytest.raises(sqlite3.IntegrityError):
            _open_ticket(test_db, category_id)

    def test_close_ticket_appends_closure_entry(self, test_db):
        """Test closing sets closed_at and logs the closure message together."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)

        closed = test_db.close_ticket(ticket_id, 222, "Moderator", None, "<EMBED:{}>", closed_at=1_700_000_100.0)

        assert closed is True
        assert test_db.get_ticket(ticket_id)["closed_at"] == 1_700_000_100.0
        messages = test_db.get_ticket_messages(ticket_id)
        assert len(messages) == 1
        assert messages[0]["author_id"] == 222
        assert messages[0]["sent_at"] == 1_700_000_100.0
        assert test_db.get_open_tickets() == []

    def test_close_ticket_twice(self, test_db):
        """Test a second close changes nothing."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)

        assert test_db.close_ticket(ticket_id, 222, "Moderator", None, "first") is True
        assert test_db.close_ticket(ticket_id, 222, "Moderator", None, "second") is False
        assert len(test_db.get_ticket_messages(ticket_id)) == 1

    def test_channel_reusable_after_close(self, test_db):
        """Test the latest ticket of a channel is returned after reuse."""
        category_id = test_db.add_category("General", 400)
        first = _open_ticket(test_db, category_id)
        test_db.close_ticket(first, 222, "Moderator", None, "closed")
        second = _open_ticket(test_db, category_id)

        assert test_db.get_latest_ticket_by_channel(5000)["id"] == second

    def test_set_staff_thread(self, test_db):
        """Test linking the staff thread."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)

        test_db.set_staff_thread(ticket_id, 7777)
        assert test_db.get_ticket(ticket_id)["staff_thread_id"] == 7777


class TestMessages:
    """Tests for the message log."""

    def test_messages_ordered_by_time_then_id(self, test_db):
        """Test canonical (sent_at, id) ordering regardless of insert order."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)

        test_db.add_ticket_message(ticket_id, 1, "A", None, "third", sent_at=30.0)
        test_db.add_ticket_message(ticket_id, 1, "A", None, "first", sent_at=10.0)
        test_db.add_ticket_message(ticket_id, 1, "A", None, "second", sent_at=10.0)

        contents = [row["content"] for row in test_db.get_ticket_messages(ticket_id)]
        assert contents == ["first", "second", "third"]

    def test_update_message(self, test_db):
        """Test an edit replaces content and records edited_at."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)
        test_db.add_ticket_message(ticket_id, 1, "A", None, "typo", sent_at=10.0, message_id=42)

        assert test_db.update_ticket_message(42, "fixed", 20.0) is True
        row = test_db.get_ticket_messages(ticket_id)[0]
        assert row["content"] == "fixed"
        assert row["edited_at"] == 20.0

    def test_update_unknown_message(self, test_db):
        """Test editing a message that was never logged."""
        assert test_db.update_ticket_message(404, "nothing", 1.0) is False


class TestMembers:
    """Tests for ticket participants."""

    def test_add_remove_and_readd(self, test_db):
        """Test the member row is upserted rather than duplicated."""
        category_id = test_db.add_category("General", 400)
        ticket_id = _open_ticket(test_db, category_id)

        test_db.add_ticket_member(ticket_id, 333, added_by=222)
        assert [row["user_id"] for row in test_db.get_ticket_members(ticket_id)] == [333]

        test_db.remove_ticket_member(ticket_id, 333, removed_by=222)
        assert test_db.get_ticket_members(ticket_id) == []
        assert test_db.get_ticket_members(ticket_id, include_removed=True)[0]["removed"] == 1

        test_db.add_ticket_member(ticket_id, 333, added_by=223)
        rows = test_db.get_ticket_members(ticket_id, include_removed=True)
        assert len(rows) == 1
        assert rows[0]["removed"] == 0
        assert rows[0]["added_by"] == 223
