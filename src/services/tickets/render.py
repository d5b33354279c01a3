"""
Ticketeer - Discord Rendering
=============================

Conversions between the ticket records and discord.py objects.
"""

import io
from typing import Any, Dict, List, Optional

import discord

from src.core.config import Config, is_ticket_staff

from .models import MessagePayload, Requester, TranscriptFile
from .transcript import serialize_content


# =============================================================================
# Outbound
# =============================================================================

def to_discord_embed(data: Dict[str, Any]) -> discord.Embed:
    """Render an embed dict."""
    return discord.Embed.from_dict({key: value for key, value in data.items() if value is not None})


def to_discord_file(transcript: TranscriptFile) -> discord.File:
    """Render a transcript as a fresh attachment (files are single-use)."""
    buffer = io.BytesIO(transcript.content.encode("utf-8"))
    return discord.File(buffer, filename=transcript.filename)


def payload_kwargs(payload: Optional[MessagePayload]) -> Dict[str, Any]:
    """Keyword arguments for Messageable.send / followup.send, views excluded."""
    if payload is None:
        return {}
    kwargs: Dict[str, Any] = {}
    if payload.embeds:
        kwargs["embeds"] = [to_discord_embed(embed) for embed in payload.embeds]
    if payload.files:
        kwargs["files"] = [to_discord_file(file) for file in payload.files]
    return kwargs


# =============================================================================
# Inbound
# =============================================================================

def requester_from_member(member: Any, config: Optional[Config] = None) -> Requester:
    """Snapshot a discord.Member (or User) as a Requester."""
    return Requester(
        id=member.id,
        username=member.name,
        display_name=member.display_name,
        avatar_url=str(member.display_avatar.url) if member.display_avatar else None,
        is_staff=isinstance(member, discord.Member) and is_ticket_staff(member, config),
        is_bot=bool(getattr(member, "bot", False)),
    )


def message_to_record(message: discord.Message) -> Dict[str, Any]:
    """
    Convert a discord message into message-log columns.

    Embeds are appended to the text as <EMBED:...> markers.
    """
    author = message.author
    return {
        "message_id": message.id,
        "author_id": author.id,
        "display_name": author.display_name,
        "avatar": str(author.display_avatar.url) if author.display_avatar else None,
        "content": serialize_content(message.content, [embed.to_dict() for embed in message.embeds]),
        "sent_at": message.created_at.timestamp(),
    }


def thread_messages_to_records(messages: List[discord.Message]) -> List[Dict[str, Any]]:
    """Convert thread history into log rows with stable ids."""
    records = []
    for message in messages:
        record = message_to_record(message)
        record["id"] = message.id
        record["edited_at"] = message.edited_at.timestamp() if message.edited_at else None
        records.append(record)
    return records


__all__ = [
    "to_discord_embed",
    "to_discord_file",
    "payload_kwargs",
    "requester_from_member",
    "message_to_record",
    "thread_messages_to_records",
]
