"""
Ticketeer - Test Fixtures
=========================

Shared fixtures for all tests.
"""

import itertools
from typing import Any, Dict, List, Optional, Sequence, Set

import pytest

from src.core.config import Config
from src.services.tickets.models import (
    AccessRule,
    CategoryHandle,
    ChannelHandle,
    FormSpec,
    FormSubmission,
    MessagePayload,
    Requester,
    SubmissionStatus,
)
from src.services.tickets.platform import TicketPlatform
from src.services.tickets.registry import TicketRegistry
from src.services.tickets.scheduler import DeferredTaskScheduler
from src.services.tickets.service import TicketService
from src.services.verification import VerificationResult


# =============================================================================
# Constants
# =============================================================================

GUILD_ID = 1
DISCORD_CATEGORY_ID = 400
TRANSCRIPT_CHANNEL_ID = 500
STAFF_ROLE_ID = 77
BOT_USER_ID = 999


# =============================================================================
# Fake Platform
# =============================================================================

class FakePlatform(TicketPlatform):
    """
    In-memory platform that records every call.

    Attributes configure behaviour:
        submission_status / submission_values: what prompt_form returns.
        missing_channels: channel ids fetch_channel reports as gone.
        broken_channels: channel ids fetch_channel raises for.
        failing: method names that raise RuntimeError.
        failing_destinations: channel/user ids whose sends raise.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(10_000)

        self.categories: Dict[int, CategoryHandle] = {
            DISCORD_CATEGORY_ID: CategoryHandle(
                id=DISCORD_CATEGORY_ID,
                name="Support",
                overwrites=(AccessRule(target_id=GUILD_ID, target_type="role", deny=1 << 10),),
            ),
        }
        self.channels: Dict[int, ChannelHandle] = {}
        self.channel_overwrites: Dict[int, List[AccessRule]] = {}
        self.missing_channels: Set[int] = set()
        self.broken_channels: Set[int] = set()
        self.failing: Set[str] = set()
        self.failing_destinations: Set[int] = set()

        self.submission_status = SubmissionStatus.SUBMITTED
        self.submission_values: Dict[str, str] = {}

        self.sent: List[tuple] = []
        self.direct_messages: List[tuple] = []
        self.deleted: List[int] = []
        self.access_changes: List[tuple] = []
        self.threads: Dict[int, int] = {}
        self.thread_messages: Dict[int, List[Dict[str, Any]]] = {}
        self.forms: List[FormSpec] = []
        self.deferred: List[Any] = []
        self.responses: List[tuple] = []

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise RuntimeError(f"{method} failed")

    # Identity

    @property
    def bot_identity(self) -> Requester:
        return Requester(id=BOT_USER_ID, username="ticketeer", display_name="Ticketeer", is_bot=True)

    # Channels

    async def fetch_category(self, category_id: int) -> Optional[CategoryHandle]:
        self._check("fetch_category")
        return self.categories.get(category_id)

    async def fetch_channel(self, channel_id: int) -> Optional[ChannelHandle]:
        if channel_id in self.broken_channels:
            raise RuntimeError("503 Service Unavailable")
        if channel_id in self.missing_channels:
            return None
        return self.channels.get(channel_id)

    async def create_text_channel(
        self,
        category: CategoryHandle,
        name: str,
        overwrites: Sequence[AccessRule],
        reason: Optional[str] = None,
    ) -> ChannelHandle:
        self._check("create_text_channel")
        channel_id = next(self._ids)
        channel = ChannelHandle(
            id=channel_id,
            name=name,
            url=f"https://discord.com/channels/{GUILD_ID}/{channel_id}",
        )
        self.channels[channel_id] = channel
        self.channel_overwrites[channel_id] = list(overwrites)
        return channel

    async def delete_channel(self, channel_id: int, reason: Optional[str] = None) -> None:
        self._check("delete_channel")
        self.channels.pop(channel_id, None)
        self.deleted.append(channel_id)

    async def set_member_access(
        self,
        channel_id: int,
        user_id: int,
        allowed: bool,
        reason: Optional[str] = None,
    ) -> None:
        self._check("set_member_access")
        self.access_changes.append((channel_id, user_id, allowed))

    # Messages

    async def send_message(self, channel_id: int, payload: MessagePayload) -> None:
        self._check("send_message")
        if channel_id in self.failing_destinations:
            raise RuntimeError(f"cannot send to {channel_id}")
        self.sent.append((channel_id, payload))

    async def send_direct_message(self, user_id: int, payload: MessagePayload) -> None:
        self._check("send_direct_message")
        if user_id in self.failing_destinations:
            raise RuntimeError("Cannot send messages to this user")
        self.direct_messages.append((user_id, payload))

    async def create_private_thread(
        self,
        channel_id: int,
        name: str,
        reason: Optional[str] = None,
    ) -> ChannelHandle:
        self._check("create_private_thread")
        thread = ChannelHandle(id=next(self._ids), name=name)
        self.threads[thread.id] = channel_id
        return thread

    async def fetch_thread_messages(self, thread_id: int, limit: int) -> List[Dict[str, Any]]:
        self._check("fetch_thread_messages")
        return list(self.thread_messages.get(thread_id, []))[:limit]

    # Interactions

    async def prompt_form(self, responder: Any, form: FormSpec, timeout: float) -> FormSubmission:
        self.forms.append(form)
        return FormSubmission(
            status=self.submission_status,
            values=dict(self.submission_values),
            responder="modal-interaction",
        )

    async def defer(self, responder: Any) -> None:
        self.deferred.append(responder)

    async def respond(self, responder: Any, content: str, payload: Optional[MessagePayload] = None) -> None:
        if responder is None:
            return
        self.responses.append((responder, content))

    # Helpers

    def sent_to(self, channel_id: int) -> List[MessagePayload]:
        return [payload for target, payload in self.sent if target == channel_id]


# =============================================================================
# Fake Verifier
# =============================================================================

class FakeVerifier:
    """Purchase verifier with a fixed set of known transactions."""

    def __init__(self) -> None:
        self.payments: Dict[str, VerificationResult] = {}
        self.calls: List[str] = []

    async def verify_purchase(self, token: str) -> VerificationResult:
        self.calls.append(token)
        return self.payments.get(token, VerificationResult.failure("not_found"))


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path for testing."""
    return tmp_path / "test_tickets.db"


@pytest.fixture
def test_db(temp_db_path, monkeypatch):
    """Create a fresh test database instance."""
    from src.core.database import manager as db_module

    # Reset singleton
    db_module.DatabaseManager._instance = None

    monkeypatch.setattr(db_module, "DB_PATH", temp_db_path)
    monkeypatch.setattr(db_module, "DATA_DIR", temp_db_path.parent)

    db = db_module.DatabaseManager()

    yield db

    db.close()
    db_module.DatabaseManager._instance = None


# =============================================================================
# Service
# =============================================================================

@pytest.fixture
def config():
    """Config with a transcript channel and one staff role."""
    return Config(
        discord_token="test-token",
        main_guild_id=GUILD_ID,
        ticket_opener_channel_id=300,
        transcript_channel_id=TRANSCRIPT_CHANNEL_ID,
        staff_role_ids={STAFF_ROLE_ID},
        tebex_secret="secret",
        form_timeout=60.0,
        channel_delete_delay=0.0,
    )


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def registry():
    return TicketRegistry()


@pytest.fixture
def service(test_db, platform, verifier, config, registry):
    """TicketService wired to the fakes and a fresh database."""
    return TicketService(
        platform,
        registry,
        verifier=verifier,
        db=test_db,
        config=config,
        scheduler=DeferredTaskScheduler(),
    )


@pytest.fixture
def requester():
    return Requester(id=111, username="alice", display_name="Alice", avatar_url="https://cdn.example/a.png")


@pytest.fixture
def staff():
    return Requester(id=222, username="mod", display_name="Moderator", is_staff=True)


@pytest.fixture
def outsider():
    return Requester(id=333, username="mallory", display_name="Mallory")


@pytest.fixture
def general_category(test_db):
    """Category without verification or fields (fast path)."""
    category_id = test_db.add_category(
        "General",
        DISCORD_CATEGORY_ID,
        description="Anything else",
        require_verification=False,
    )
    return test_db.get_category(category_id)


@pytest.fixture
def billing_category(test_db):
    """Category that requires a purchase and asks one extra question."""
    category_id = test_db.add_category(
        "Billing",
        DISCORD_CATEGORY_ID,
        description="Payment problems",
        emoji="💳",
        require_verification=True,
    )
    test_db.add_field(category_id, "What went wrong?", short_field=False)
    return test_db.get_category(category_id)
