"""
Ticketeer - Ticket HTML Transcript Generator
============================================

Renders a ticket's message log as a static, self-contained HTML page.

DESIGN:
    Output depends only on the input rows: no clock values, no scripts,
    inline CSS only. Identical logs give byte-identical documents.
"""

import html as html_lib
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from src.core.config import NY_TZ
from src.core.constants import DEFAULT_AVATAR_URL
from src.core.logger import logger

from .collectors import extract_embeds, is_marker_only
from .markdown import format_markdown


# =============================================================================
# CSS Styles
# =============================================================================

TRANSCRIPT_CSS = '''
:root {
    --bg: #1e1f22;
    --bg-card: #2b2d31;
    --bg-embed: #232428;
    --border: #3f4147;
    --text: #dbdee1;
    --text-muted: #949ba4;
    --accent: #5865f2;
    --mention-bg: rgba(88, 101, 242, 0.3);
}

* { margin: 0; padding: 0; box-sizing: border-box; }

body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.45;
}

.container { max-width: 860px; margin: 0 auto; padding: 24px 16px; }

.header {
    background: var(--bg-card);
    border: 1px solid var(--border);
    border-radius: 10px;
    padding: 16px 20px;
    margin-bottom: 20px;
}

.header h1 { font-size: 20px; margin-bottom: 10px; }

.meta { display: flex; flex-wrap: wrap; gap: 8px 24px; font-size: 13px; }
.meta-label { color: var(--text-muted); margin-right: 4px; }

.message { display: flex; gap: 14px; padding: 8px 4px; }
.avatar { width: 40px; height: 40px; border-radius: 50%; flex-shrink: 0; }
.message-body { min-width: 0; flex: 1; }
.author { font-weight: 600; margin-right: 8px; }
.timestamp, .edited { color: var(--text-muted); font-size: 12px; }
.content { word-wrap: break-word; margin-top: 2px; }

blockquote { border-left: 4px solid var(--border); padding-left: 10px; }
code { background: var(--bg-embed); border-radius: 4px; padding: 0 3px; font-size: 85%; }
pre { background: var(--bg-embed); border: 1px solid var(--border); border-radius: 4px; padding: 8px; overflow-x: auto; }
pre code { padding: 0; background: none; }
.mention { background: var(--mention-bg); border-radius: 3px; padding: 0 2px; }

.embed {
    background: var(--bg-embed);
    border-left: 4px solid var(--accent);
    border-radius: 4px;
    padding: 8px 12px;
    margin-top: 6px;
    max-width: 520px;
    overflow: hidden;
}
.embed-thumbnail { float: right; max-width: 80px; max-height: 80px; border-radius: 4px; margin-left: 12px; }
.embed-author { display: flex; align-items: center; gap: 8px; font-size: 13px; font-weight: 600; }
.embed-author-icon { width: 24px; height: 24px; border-radius: 50%; }
.embed-title { font-weight: 700; margin-top: 4px; }
.embed-description { font-size: 14px; margin-top: 4px; }
.embed-fields { display: flex; flex-wrap: wrap; gap: 8px; margin-top: 8px; }
.embed-field { flex: 1 1 100%; font-size: 14px; }
.embed-field.inline { flex: 1 1 30%; }
.embed-field-name { font-weight: 600; }
.embed-image { max-width: 100%; border-radius: 4px; margin-top: 8px; }
.embed-footer { display: flex; align-items: center; gap: 6px; font-size: 12px; color: var(--text-muted); margin-top: 8px; }
.embed-footer-icon { width: 20px; height: 20px; border-radius: 50%; }

.empty { color: var(--text-muted); text-align: center; padding: 24px; }
'''


# =============================================================================
# Message Selection
# =============================================================================

def _ordered(messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(messages, key=lambda m: (m.get("sent_at") or 0, m.get("id") or 0))


def drop_bookkeeping_messages(messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Drop a leading and/or trailing message that is a bare embed marker.

    Only the first and last entries are candidates; marker-only messages
    anywhere else are kept.
    """
    kept = _ordered(messages)
    if kept and is_marker_only(kept[0].get("content")):
        kept = kept[1:]
    if kept and is_marker_only(kept[-1].get("content")):
        kept = kept[:-1]
    return kept


# =============================================================================
# HTML Generation
# =============================================================================

def format_timestamp(timestamp: Optional[float]) -> str:
    """Format a unix timestamp as MM/DD/YYYY hh:mm AM/PM in New York time."""
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(timestamp, tz=NY_TZ).strftime("%m/%d/%Y %I:%M %p")


def generate_html_transcript(
    ticket: Dict[str, Any],
    messages: Sequence[Dict[str, Any]],
    category_name: Optional[str] = None,
    staff_evidence: bool = False,
) -> str:
    """
    Render a transcript document.

    Args:
        ticket: Ticket row (TicketRecord).
        messages: Message rows. For a ticket log, leading/trailing
            bookkeeping markers are dropped. With staff_evidence the
            messages are an explicit subset and are rendered as given.
        category_name: Category display name for the header.
        staff_evidence: Render the staff thread variant.

    Returns:
        HTML string of the transcript
    """
    if staff_evidence:
        selected = _ordered(messages)
    else:
        selected = drop_bookkeeping_messages(messages)

    ticket_id = ticket.get("id")
    title = f"Ticket #{ticket_id} Staff Evidence" if staff_evidence else f"Ticket #{ticket_id}"
    requester = ticket.get("user_display_name") or ticket.get("user_username") or "Unknown"

    meta_items = [
        ("Category", category_name or "Unknown"),
        ("Opened By", f"{requester} ({ticket.get('user_id')})"),
        ("Channel", f"#{ticket.get('ticket_name', '')}"),
        ("Opened", format_timestamp(ticket.get("opened_at"))),
    ]
    if ticket.get("closed_at") is not None:
        meta_items.append(("Closed", format_timestamp(ticket.get("closed_at"))))
    meta_items.append(("Messages", str(len(selected))))

    meta_html = "\n".join(
        f'                <span><span class="meta-label">{html_lib.escape(label)}:</span>{html_lib.escape(value)}</span>'
        for label, value in meta_items
    )

    if selected:
        messages_html = "\n".join(_render_message(message) for message in selected)
    else:
        messages_html = '        <div class="empty">No messages were logged for this ticket.</div>'

    html_output = f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html_lib.escape(title)} - Transcript</title>
    <style>{TRANSCRIPT_CSS}</style>
</head>
<body>
    <div class="container">
        <header class="header">
            <h1>{html_lib.escape(title)}</h1>
            <div class="meta">
{meta_html}
            </div>
        </header>
        <main class="messages">
{messages_html}
        </main>
    </div>
</body>
</html>
'''

    logger.debug("HTML Transcript Generated", [
        ("Ticket ID", str(ticket_id)),
        ("Messages", str(len(selected))),
        ("Staff Evidence", "Yes" if staff_evidence else "No"),
    ])

    return html_output


def _safe_url(url: Any) -> str:
    """Escaped http(s) URL, or empty string for anything else."""
    if not isinstance(url, str) or not url.startswith(("https://", "http://")):
        return ""
    return html_lib.escape(url, quote=True)


def _render_message(message: Dict[str, Any]) -> str:
    """Render one logged message."""
    avatar = _safe_url(message.get("avatar")) or DEFAULT_AVATAR_URL
    author = html_lib.escape(message.get("display_name") or "Unknown")
    timestamp = format_timestamp(message.get("sent_at"))
    edited = '<span class="edited">(edited)</span>' if message.get("edited_at") else ""

    text, embeds = extract_embeds(message.get("content"))
    content_html = format_markdown(text.strip())
    embeds_html = "".join(_render_embed(embed) for embed in embeds)

    content_block = f'<div class="content">{content_html}</div>' if content_html else ""

    return f'''        <div class="message">
            <img class="avatar" src="{avatar}" alt="">
            <div class="message-body">
                <div><span class="author">{author}</span><span class="timestamp">{timestamp}</span> {edited}</div>
                {content_block}{embeds_html}
            </div>
        </div>'''


def _render_embed(embed: Dict[str, Any]) -> str:
    """Render one embed dict as a sub-block."""
    color = embed.get("color")
    border = f' style="border-left-color: #{int(color):06x}"' if isinstance(color, int) else ""
    parts = [f'<div class="embed"{border}>']

    thumbnail = _safe_url((embed.get("thumbnail") or {}).get("url"))
    if thumbnail:
        parts.append(f'<img class="embed-thumbnail" src="{thumbnail}" alt="">')

    author = embed.get("author") or {}
    if author.get("name"):
        icon = _safe_url(author.get("icon_url"))
        icon_html = f'<img class="embed-author-icon" src="{icon}" alt="">' if icon else ""
        parts.append(f'<div class="embed-author">{icon_html}<span>{html_lib.escape(str(author["name"]))}</span></div>')

    if embed.get("title"):
        parts.append(f'<div class="embed-title">{format_markdown(str(embed["title"]))}</div>')

    if embed.get("description"):
        parts.append(f'<div class="embed-description">{format_markdown(str(embed["description"]))}</div>')

    fields = embed.get("fields") or []
    if fields:
        parts.append('<div class="embed-fields">')
        for field in fields:
            inline_class = " inline" if field.get("inline") else ""
            parts.append(
                f'<div class="embed-field{inline_class}">'
                f'<div class="embed-field-name">{format_markdown(str(field.get("name", "")))}</div>'
                f'<div class="embed-field-value">{format_markdown(str(field.get("value", "")))}</div>'
                f'</div>'
            )
        parts.append('</div>')

    image = _safe_url((embed.get("image") or {}).get("url"))
    if image:
        parts.append(f'<img class="embed-image" src="{image}" alt="">')

    footer = embed.get("footer") or {}
    if footer.get("text"):
        icon = _safe_url(footer.get("icon_url"))
        icon_html = f'<img class="embed-footer-icon" src="{icon}" alt="">' if icon else ""
        parts.append(f'<div class="embed-footer">{icon_html}<span>{html_lib.escape(str(footer["text"]))}</span></div>')

    parts.append('</div>')
    return "".join(parts)


__all__ = [
    "TRANSCRIPT_CSS",
    "drop_bookkeeping_messages",
    "format_timestamp",
    "generate_html_transcript",
]
