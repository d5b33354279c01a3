"""
Ticketeer - Ticket Platform Interface
=====================================

Everything the ticket workflows need from the chat platform.

DESIGN:
    The workflows only speak in the records from models.py. The Discord
    implementation lives in discord_platform.py; tests use an in-memory
    fake that records every call.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from .models import (
    AccessRule,
    CategoryHandle,
    ChannelHandle,
    FormSpec,
    FormSubmission,
    MessagePayload,
    Requester,
)


class TicketPlatform(ABC):
    """Chat platform operations used by TicketService."""

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    @abstractmethod
    def bot_identity(self) -> Requester:
        """The bot's own user, used to author synthetic log entries."""

    # =========================================================================
    # Channels
    # =========================================================================

    @abstractmethod
    async def fetch_category(self, category_id: int) -> Optional[CategoryHandle]:
        """Resolve a provisioning location with its access rules, or None."""

    @abstractmethod
    async def fetch_channel(self, channel_id: int) -> Optional[ChannelHandle]:
        """
        Resolve a channel.

        Returns:
            The handle, or None if the channel does not exist.

        Raises:
            Exception: Any other platform error (treated as transient).
        """

    @abstractmethod
    async def create_text_channel(
        self,
        category: CategoryHandle,
        name: str,
        overwrites: Sequence[AccessRule],
        reason: Optional[str] = None,
    ) -> ChannelHandle:
        """Create a text channel under a category with the given access rules."""

    @abstractmethod
    async def delete_channel(self, channel_id: int, reason: Optional[str] = None) -> None:
        """Delete a channel. A channel that is already gone is not an error."""

    @abstractmethod
    async def set_member_access(
        self,
        channel_id: int,
        user_id: int,
        allowed: bool,
        reason: Optional[str] = None,
    ) -> None:
        """Grant View Channel to a member, or drop the member's overwrite."""

    # =========================================================================
    # Messages
    # =========================================================================

    @abstractmethod
    async def send_message(self, channel_id: int, payload: MessagePayload) -> None:
        """Post a message into a channel or thread."""

    @abstractmethod
    async def send_direct_message(self, user_id: int, payload: MessagePayload) -> None:
        """Direct-message a user."""

    @abstractmethod
    async def create_private_thread(
        self,
        channel_id: int,
        name: str,
        reason: Optional[str] = None,
    ) -> ChannelHandle:
        """Create a private thread inside a channel."""

    @abstractmethod
    async def fetch_thread_messages(self, thread_id: int, limit: int) -> List[Dict[str, Any]]:
        """Read up to `limit` thread messages as message-log rows, oldest first."""

    # =========================================================================
    # Interactions
    # =========================================================================

    @abstractmethod
    async def prompt_form(self, responder: Any, form: FormSpec, timeout: float) -> FormSubmission:
        """Show a structured prompt and wait for the correlated submission."""

    @abstractmethod
    async def defer(self, responder: Any) -> None:
        """Acknowledge an interaction so a slow workflow can reply later."""

    @abstractmethod
    async def respond(
        self,
        responder: Any,
        content: str,
        payload: Optional[MessagePayload] = None,
    ) -> None:
        """Send an ephemeral reply. A None responder is a no-op."""


__all__ = ["TicketPlatform"]
