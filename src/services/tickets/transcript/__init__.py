"""
Ticketeer - Ticket Transcript Package
=====================================

HTML transcript generation from the ticket message log.
"""

from .collectors import (
    embed_marker,
    serialize_content,
    extract_embeds,
    is_marker_only,
)
from .markdown import (
    escape_html,
    format_markdown,
)
from .html_generator import (
    drop_bookkeeping_messages,
    format_timestamp,
    generate_html_transcript,
)

__all__ = [
    # Collectors
    "embed_marker",
    "serialize_content",
    "extract_embeds",
    "is_marker_only",
    # Markdown
    "escape_html",
    "format_markdown",
    # HTML
    "drop_bookkeeping_messages",
    "format_timestamp",
    "generate_html_transcript",
]
