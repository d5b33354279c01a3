"""
Ticketeer - Form and Embed Tests
================================

Tests for intake/close forms, answer collection, embeds and channel
access rules.
"""

from src.services.tickets.embeds import (
    build_archive_embed,
    build_closure_embed,
    build_intro_embed,
    format_purchase_info,
)
from src.services.tickets.forms import (
    build_close_form,
    build_intake_form,
    closure_reason,
    collect_answers,
    field_key,
)
from src.services.tickets.models import (
    VIEW_CHANNEL,
    AccessRule,
    ActiveTicket,
    FormAnswer,
    Requester,
)
from src.services.tickets.provisioning import build_ticket_overwrites


CATEGORY = {"id": 3, "name": "Billing", "category_id": 400, "require_verification": 1}
PLAIN_CATEGORY = {"id": 4, "name": "General", "category_id": 400, "require_verification": 0}
ALICE = Requester(id=111, username="alice", display_name="Alice")


def _field_row(field_id, label, **extra):
    row = {"id": field_id, "category": 3, "label": label, "required": 1, "short_field": 1,
           "placeholder": None, "min_length": None, "max_length": None}
    row.update(extra)
    return row


class TestIntakeForm:
    """Tests for build_intake_form."""

    def test_fast_path_has_no_form(self):
        """Test a category without verification or fields needs no prompt."""
        assert build_intake_form(PLAIN_CATEGORY, [], 111) is None

    def test_verification_field_first(self):
        """Test the transaction id input precedes the category fields."""
        form = build_intake_form(CATEGORY, [_field_row(9, "What happened?", short_field=0)], 111)

        assert form.custom_id == "collector-openticket-3-111"
        assert form.title == "Billing ticket"
        assert [f.key for f in form.fields] == ["tbxid", field_key(9)]
        verification = form.fields[0]
        assert verification.is_verification
        assert verification.label == "Transaction ID"
        assert (verification.min_length, verification.max_length) == (25, 40)
        assert form.fields[1].long is True

    def test_fields_only(self):
        """Test a category with fields but no verification."""
        form = build_intake_form(PLAIN_CATEGORY, [_field_row(1, "Q1", required=0)], 111)

        assert [f.label for f in form.fields] == ["Q1"]
        assert form.fields[0].required is False

    def test_capped_at_five_inputs(self):
        """Test the form never exceeds five inputs."""
        rows = [_field_row(i, f"Q{i}") for i in range(1, 8)]
        form = build_intake_form(CATEGORY, rows, 111)
        assert len(form.fields) == 5

    def test_long_title_truncated(self):
        """Test titles fit the modal limit."""
        category = dict(PLAIN_CATEGORY, name="X" * 60)
        form = build_intake_form(category, [_field_row(1, "Q")], 111)
        assert len(form.title) == 45


class TestCollectAnswers:
    """Tests for collect_answers and closure_reason."""

    def test_keeps_non_empty_answers_in_order(self):
        """Test skipped optional fields are dropped and values trimmed."""
        form = build_intake_form(CATEGORY, [_field_row(1, "Q1"), _field_row(2, "Q2", required=0)], 111)
        answers = collect_answers(form, {"tbxid": " tbx-abc-def ", field_key(1): "yes", field_key(2): "   "})

        assert answers == [
            FormAnswer(key="tbxid", label="Transaction ID", value="tbx-abc-def", is_verification=True),
            FormAnswer(key=field_key(1), label="Q1", value="yes"),
        ]

    def test_closure_reason(self):
        """Test the close form reason is trimmed or absent."""
        form = build_close_form(5000, "alice", 111)

        assert form.custom_id == "collector-closeticket-5000"
        assert form.title == "Closing ticket: alice"
        assert form.fields[0].required is False
        assert closure_reason({"reason": "  solved "}) == "solved"
        assert closure_reason({"reason": "  "}) is None
        assert closure_reason({}) is None


class TestEmbeds:
    """Tests for the ticket embed builders."""

    def test_intro_replaces_transaction_id_with_purchase_info(self):
        """Test the raw token is shown as a purchase summary."""
        answers = [
            FormAnswer("tbxid", "Transaction ID", "tbx-abc-def", is_verification=True),
            FormAnswer("field-1", "What happened?", "Charged twice"),
        ]
        info = format_purchase_info("tbx-abc-def", "Complete", ["VIP", "Crate"])
        embed = build_intro_embed("Billing", ALICE, answers, info)

        assert embed["title"] == "Billing ticket - Alice"
        assert [f["name"] for f in embed["fields"]] == ["Purchase Info", "What happened?"]
        assert embed["fields"][0]["value"] == (
            "* Transaction ID: tbx-abc-def\n* Status: Complete\n* Packages: VIP, Crate"
        )

    def test_intro_without_answers(self):
        """Test the fast-path intro has no fields."""
        embed = build_intro_embed("General", ALICE, [])
        assert "fields" not in embed
        assert ":warning:" in embed["description"]

    def test_closure_embed(self):
        """Test closure entries with and without a reason."""
        assert build_closure_embed("done")["description"] == "Closure reason:\n> done"
        assert build_closure_embed(None)["description"] == "No reason provided."

    def test_archive_embed(self):
        """Test the archive summary names closer and owner."""
        ticket = ActiveTicket(7, 5000, "alice", 3, "Billing", ALICE, 0.0)
        closer = Requester(id=222, username="mod", display_name="Moderator")
        embed = build_archive_embed(ticket, closer, "solved")

        fields = {f["name"]: f["value"] for f in embed["fields"]}
        assert embed["title"] == "📋 Ticket #7 Closed"
        assert fields["Closed By"] == "Moderator (@mod)"
        assert fields["Owner"] == "Alice (@alice)"
        assert fields["Closure Reason"] == "solved"


class TestTicketOverwrites:
    """Tests for build_ticket_overwrites."""

    def test_requester_granted_view(self):
        """Test category rules are kept and the requester can view."""
        everyone = AccessRule(target_id=1, target_type="role", deny=VIEW_CHANNEL)
        rules = build_ticket_overwrites([everyone], 111)

        assert rules[0] == everyone
        assert rules[1] == AccessRule(target_id=111, target_type="member", allow=VIEW_CHANNEL, deny=0)

    def test_existing_member_rule_merged(self):
        """Test a category rule for the requester is merged, not duplicated."""
        send_messages = 1 << 11
        existing = AccessRule(target_id=111, target_type="member", allow=send_messages, deny=VIEW_CHANNEL)
        rules = build_ticket_overwrites([existing], 111)

        assert rules == [
            AccessRule(target_id=111, target_type="member", allow=send_messages | VIEW_CHANNEL, deny=0),
        ]

    def test_role_with_same_id_untouched(self):
        """Test only member rules are matched against the requester."""
        role = AccessRule(target_id=111, target_type="role", deny=VIEW_CHANNEL)
        rules = build_ticket_overwrites([role], 111)
        assert len(rules) == 2
        assert rules[0] == role
