"""
Ticketeer - Transcript Markdown
===============================

Restricted Discord markdown to HTML for transcript bodies.

DESIGN:
    Literal text is escaped before any substitution, so message content
    can never inject markup. Existing entities are left alone, and the
    only tags let through unescaped are balanced pairs in the exact
    shapes this module emits. Running format_markdown on its own output
    therefore leaves the visible text unchanged.
"""

import re
from typing import List, Match


# =============================================================================
# Escaping
# =============================================================================

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
}

# An existing entity is matched first and kept as is
_ESCAPE_PATTERN = re.compile(r"&(?:[a-zA-Z][a-zA-Z0-9]{1,31}|#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6});|[&<>\"']")


def escape_html(text: str) -> str:
    """Escape HTML special characters without double-escaping entities."""
    return _ESCAPE_PATTERN.sub(
        lambda m: _ESCAPES.get(m.group(0), m.group(0)),
        text,
    )


# =============================================================================
# Markdown Subset
# =============================================================================

# Emitted shapes kept through escaping. Pairs are matched innermost first
# and only when balanced; a stray or unclosed tag is escaped like text.
_VOID_TAG = re.compile(r"<br>")
_MENTION_TAG = re.compile(r'<span class="mention">(?:@User|@Role|#channel)</span>')
_PAIRED_TAG = re.compile(r"<(strong|em|u|s|code|blockquote)>([^<]*?)</\1>")
_PRE_BLOCK = re.compile(r"<pre>(\x00(\d+)\x00[^<]*?\x00\d+\x00)</pre>")

_PLACEHOLDER = re.compile(r"\x00(\d+)\x00")

_RULES = [
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"__(.+?)__"), r"<u>\1</u>"),
    (re.compile(r"\*(.+?)\*"), r"<em>\1</em>"),
    (re.compile(r"(?<!\w)_([^_\n]+?)_(?!\w)"), r"<em>\1</em>"),
    (re.compile(r"~~(.+?)~~"), r"<s>\1</s>"),
    (re.compile(r"```(?:[a-zA-Z0-9_+-]+\n)?(.*?)```", re.DOTALL), r"<pre><code>\1</code></pre>"),
    (re.compile(r"`([^`\n]+?)`"), r"<code>\1</code>"),
    (re.compile(r"^&gt; (.*)$", re.MULTILINE), r"<blockquote>\1</blockquote>"),
    (re.compile(r"&lt;@&amp;\d+&gt;"), '<span class="mention">@Role</span>'),
    (re.compile(r"&lt;@!?\d+&gt;"), '<span class="mention">@User</span>'),
    (re.compile(r"&lt;#\d+&gt;"), '<span class="mention">#channel</span>'),
    (re.compile(r"\r?\n"), "<br>"),
]


def _protect_emitted_tags(text: str, kept: List[str]) -> str:
    """Swap well-formed emitted markup for placeholders, leaving inner text in place."""

    def _hold(tag: str) -> str:
        kept.append(tag)
        return f"\x00{len(kept) - 1}\x00"

    def _pair(match: Match[str]) -> str:
        tag = match.group(1)
        return f"{_hold(f'<{tag}>')}{match.group(2)}{_hold(f'</{tag}>')}"

    def _pre(match: Match[str]) -> str:
        if kept[int(match.group(2))] != "<code>":
            return match.group(0)
        return f"{_hold('<pre>')}{match.group(1)}{_hold('</pre>')}"

    text = _VOID_TAG.sub(lambda m: _hold(m.group(0)), text)
    text = _MENTION_TAG.sub(lambda m: _hold(m.group(0)), text)

    while True:
        previous = text
        text = _PAIRED_TAG.sub(_pair, text)
        text = _PRE_BLOCK.sub(_pre, text)
        if text == previous:
            return text


def format_markdown(text: str) -> str:
    """
    Render the supported markdown subset as safe HTML.

    Supports bold, italic, underline, strikethrough, fenced and inline
    code, block quotes, user/role/channel references and line breaks.

    Args:
        text: Raw message text (or a previous output of this function).

    Returns:
        HTML fragment.
    """
    if not text:
        return ""

    kept: List[str] = []
    text = _protect_emitted_tags(text.replace("\x00", ""), kept)
    text = escape_html(text)

    for pattern, replacement in _RULES:
        text = pattern.sub(replacement, text)

    return _PLACEHOLDER.sub(lambda m: kept[int(m.group(1))], text)


__all__ = ["escape_html", "format_markdown"]
