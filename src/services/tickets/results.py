"""
Ticketeer - Ticket Results
==========================

Typed outcome of every ticket workflow.

DESIGN:
    Workflows return a TicketResult instead of raising for expected
    control flow (a form that times out, a channel that is not a ticket).
    Callers branch on the outcome tag. Exceptions stay reserved for
    genuine infrastructure errors, which the workflows map onto
    FAILED results at their boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Tags
# =============================================================================

class Outcome(Enum):
    """Top-level tag of a workflow result."""

    OK = "ok"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    FAILED = "failed"


class ErrorKind(Enum):
    """Why a workflow did not complete."""

    CATEGORY_NOT_FOUND = "category_not_found"
    INTAKE_CANCELLED = "intake_cancelled"
    VERIFICATION_FAILED = "verification_failed"
    PROVISIONING_FAILED = "provisioning_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    CHANNEL_NOT_TICKET = "channel_not_ticket"
    NOT_AUTHORIZED = "not_authorized"
    INVALID_PARTICIPANT = "invalid_participant"
    TRANSCRIPT_GENERATION_FAILED = "transcript_generation_failed"
    ARCHIVAL_FANOUT_FAILED = "archival_fanout_failed"


USER_MESSAGES = {
    ErrorKind.CATEGORY_NOT_FOUND: "That ticket category is no longer available.",
    ErrorKind.INTAKE_CANCELLED: "Ticket opening cancelled.",
    ErrorKind.VERIFICATION_FAILED: "This ticket requires a **valid** transaction id for a purchase.",
    ErrorKind.PROVISIONING_FAILED: "Unable to open a ticket right now, please inform the staff team.",
    ErrorKind.PERSISTENCE_FAILED: "Something went wrong while saving the ticket, please try again later.",
    ErrorKind.CHANNEL_NOT_TICKET: "This channel is not an open ticket.",
    ErrorKind.NOT_AUTHORIZED: "Only the ticket owner or staff can do that.",
    ErrorKind.INVALID_PARTICIPANT: "That member cannot be changed on this ticket.",
    ErrorKind.TRANSCRIPT_GENERATION_FAILED: "The transcript could not be generated.",
    ErrorKind.ARCHIVAL_FANOUT_FAILED: "The transcript could not be delivered everywhere.",
}
"""Short, non-technical text shown to the user for each failure kind."""


# =============================================================================
# Result
# =============================================================================

@dataclass(frozen=True)
class TicketResult:
    """
    Tagged workflow result: Ok(value), Cancelled, Timeout or Failed(kind, detail).

    Attributes:
        outcome: The tag.
        value: Payload of an OK result.
        kind: Failure kind for every non-OK result.
        detail: Technical detail for logs, never shown to users.
    """

    outcome: Outcome
    value: Any = None
    kind: Optional[ErrorKind] = None
    detail: str = ""

    @classmethod
    def ok(cls, value: Any = None) -> "TicketResult":
        return cls(Outcome.OK, value=value)

    @classmethod
    def cancelled(cls, detail: str = "", kind: ErrorKind = ErrorKind.INTAKE_CANCELLED) -> "TicketResult":
        return cls(Outcome.CANCELLED, kind=kind, detail=detail)

    @classmethod
    def timeout(cls, detail: str = "", kind: ErrorKind = ErrorKind.INTAKE_CANCELLED) -> "TicketResult":
        return cls(Outcome.TIMEOUT, kind=kind, detail=detail)

    @classmethod
    def failed(cls, kind: ErrorKind, detail: str = "") -> "TicketResult":
        return cls(Outcome.FAILED, kind=kind, detail=detail)

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def user_message(self) -> str:
        """Ephemeral text for the requesting user (empty for OK results)."""
        if self.kind is None:
            return ""
        return USER_MESSAGES[self.kind]


__all__ = [
    "Outcome",
    "ErrorKind",
    "TicketResult",
    "USER_MESSAGES",
]
