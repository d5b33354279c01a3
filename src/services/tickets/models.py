"""
Ticketeer - Ticket Models
=========================

Immutable records passed between the ticket workflows and the platform.

DESIGN:
    Workflows describe prompts and messages as plain data. Turning them
    into discord.py embeds, modals and views is the job of the platform
    adapter, so the lifecycle logic never touches presentation objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from src.core.database.models import TicketRecord


# Discord "View Channel" permission bit
VIEW_CHANNEL = 1 << 10


# =============================================================================
# Identities
# =============================================================================

@dataclass(frozen=True)
class Requester:
    """Snapshot of a guild member taking part in a ticket."""

    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    is_staff: bool = False
    is_bot: bool = False

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


class TicketState(Enum):
    """Lifecycle state of a registered ticket."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class ActiveTicket:
    """
    An open ticket as held by the registry.

    Attributes:
        ticket_id: Database id.
        channel_id: Bound Discord channel.
        channel_name: Channel name at creation.
        category_id: Owning category id.
        category_name: Owning category name.
        requester: Requester snapshot taken when the ticket was opened.
        opened_at: Opened timestamp.
        staff_thread_id: Private staff thread, if one was created.
        channel_url: Jump link to the channel, when known.
        state: open, closing or closed.
    """

    ticket_id: int
    channel_id: int
    channel_name: str
    category_id: int
    category_name: str
    requester: Requester
    opened_at: float
    staff_thread_id: Optional[int] = None
    channel_url: str = ""
    state: TicketState = TicketState.OPEN

    @classmethod
    def from_record(
        cls,
        record: TicketRecord,
        category_name: str,
        channel_name: Optional[str] = None,
        channel_url: str = "",
    ) -> "ActiveTicket":
        """Rebuild a registry entry from a persisted row."""
        return cls(
            ticket_id=record["id"],
            channel_id=record["channel_id"],
            channel_name=channel_name or record["ticket_name"],
            channel_url=channel_url,
            category_id=record["category"],
            category_name=category_name,
            requester=Requester(
                id=record["user_id"],
                username=record["user_username"],
                display_name=record["user_display_name"],
            ),
            opened_at=record["opened_at"],
            staff_thread_id=record.get("staff_thread_id"),
        )


# =============================================================================
# Platform Handles
# =============================================================================

@dataclass(frozen=True)
class AccessRule:
    """One permission overwrite on a channel."""

    target_id: int
    target_type: str  # "role" or "member"
    allow: int = 0
    deny: int = 0


@dataclass(frozen=True)
class CategoryHandle:
    """Resolved provisioning location (a Discord category channel)."""

    id: int
    name: str
    overwrites: Tuple[AccessRule, ...] = ()


@dataclass(frozen=True)
class ChannelHandle:
    """A created or resolved channel or thread."""

    id: int
    name: str
    url: str = ""

    @property
    def mention(self) -> str:
        return f"<#{self.id}>"


# =============================================================================
# Forms
# =============================================================================

@dataclass(frozen=True)
class FormField:
    """One text input of a structured prompt."""

    key: str
    label: str
    required: bool = True
    long: bool = False
    placeholder: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    is_verification: bool = False


@dataclass(frozen=True)
class FormSpec:
    """A structured prompt correlated by custom id and requester."""

    custom_id: str
    title: str
    requester_id: int
    fields: Tuple[FormField, ...] = ()


class SubmissionStatus(Enum):
    SUBMITTED = "submitted"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FormSubmission:
    """
    Result of waiting on a structured prompt.

    Attributes:
        status: Submitted, timed out or cancelled.
        values: Raw answers keyed by FormField.key.
        responder: Handle to reply to the submitter (the modal interaction).
    """

    status: SubmissionStatus
    values: Mapping[str, str] = field(default_factory=dict)
    responder: Any = None


@dataclass(frozen=True)
class FormAnswer:
    """A retained (label, response) pair from a submitted form."""

    key: str
    label: str
    value: str
    is_verification: bool = False


# =============================================================================
# Outbound Messages
# =============================================================================

@dataclass(frozen=True)
class TranscriptFile:
    """A rendered HTML document ready to attach."""

    filename: str
    content: str


@dataclass(frozen=True)
class MessagePayload:
    """
    A message to send, described as data.

    Attributes:
        content: Plain text content.
        embeds: Embeds in Discord's JSON shape.
        files: Attachments.
        close_button: Whether to attach the persistent close-ticket button.
    """

    content: Optional[str] = None
    embeds: Tuple[Dict[str, Any], ...] = ()
    files: Tuple[TranscriptFile, ...] = ()
    close_button: bool = False


# =============================================================================
# Reports
# =============================================================================

@dataclass(frozen=True)
class ClosureReport:
    """What a confirmed closure did besides the durable state change."""

    ticket_id: int
    transcript_generated: bool
    failed_destinations: Tuple[str, ...] = ()
    deletion_job: Any = None


@dataclass
class RecoveryReport:
    """Counts from a startup reconciliation pass."""

    restored: int = 0
    closed: int = 0
    failed: int = 0


__all__ = [
    "VIEW_CHANNEL",
    "Requester",
    "TicketState",
    "ActiveTicket",
    "AccessRule",
    "CategoryHandle",
    "ChannelHandle",
    "FormField",
    "FormSpec",
    "SubmissionStatus",
    "FormSubmission",
    "FormAnswer",
    "TranscriptFile",
    "MessagePayload",
    "ClosureReport",
    "RecoveryReport",
]
