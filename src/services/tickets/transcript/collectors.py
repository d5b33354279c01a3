"""
Ticketeer - Transcript Collectors
=================================

Serialize rich content into the message log and pull it back out.

DESIGN:
    Embeds are stored in-band as `<EMBED:{json}>` markers inside the
    message content. Extraction decodes the JSON with raw_decode, so a
    `>` inside an embed string never ends the marker early and stray
    text that only looks like a marker stays as plain text.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.core.constants import EMBED_MARKER_PREFIX, EMBED_MARKER_SUFFIX


_DECODER = json.JSONDecoder()


# =============================================================================
# Serialization
# =============================================================================

def embed_marker(embed: Dict[str, Any]) -> str:
    """Serialize one embed dict as an in-band marker."""
    payload = json.dumps(embed, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return f"{EMBED_MARKER_PREFIX}{payload}{EMBED_MARKER_SUFFIX}"


def serialize_content(content: Optional[str], embeds: Iterable[Dict[str, Any]] = ()) -> str:
    """
    Combine message text and embeds into one stored content string.

    Args:
        content: Plain message text.
        embeds: Embeds in Discord's JSON shape.

    Returns:
        Text followed by one marker per embed, newline separated.
    """
    parts = [content] if content else []
    parts.extend(embed_marker(embed) for embed in embeds if embed)
    return "\n".join(parts)


# =============================================================================
# Extraction
# =============================================================================

def extract_embeds(content: Optional[str]) -> Tuple[str, List[Dict[str, Any]]]:
    """
    Split stored content into its plain text and its embeds.

    Args:
        content: Stored message content.

    Returns:
        (remaining text, embeds in order of appearance).
    """
    if not content:
        return "", []

    text_parts: List[str] = []
    embeds: List[Dict[str, Any]] = []
    position = 0

    while True:
        start = content.find(EMBED_MARKER_PREFIX, position)
        if start == -1:
            text_parts.append(content[position:])
            break

        json_start = start + len(EMBED_MARKER_PREFIX)
        try:
            embed, json_end = _DECODER.raw_decode(content, json_start)
        except json.JSONDecodeError:
            embed, json_end = None, json_start

        if isinstance(embed, dict) and content.startswith(EMBED_MARKER_SUFFIX, json_end):
            text_parts.append(content[position:start])
            embeds.append(embed)
            position = json_end + len(EMBED_MARKER_SUFFIX)
        else:
            # Not a marker, keep the prefix as text and scan on
            text_parts.append(content[position:json_start])
            position = json_start

    return "".join(text_parts), embeds


def is_marker_only(content: Optional[str]) -> bool:
    """True if content holds one or more embed markers and nothing but whitespace."""
    text, embeds = extract_embeds(content)
    return bool(embeds) and not text.strip()


__all__ = [
    "embed_marker",
    "serialize_content",
    "extract_embeds",
    "is_marker_only",
]
