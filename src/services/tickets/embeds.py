"""
Ticketeer - Ticket System Embeds
================================

Embed builder functions for the ticket system.

DESIGN:
    Builders return embeds in Discord's JSON shape (plain dicts). The
    same dict is sent through the platform, serialized into the message
    log as an <EMBED:...> marker and rendered by the transcript, so
    nothing here depends on discord.py objects.
"""

from typing import Any, Dict, List, Optional, Sequence

from src.core.config import EmbedColors
from src.core.constants import EMBED_FIELD_VALUE_MAX, VERIFICATION_LABEL
from src.core.database.models import CategoryFieldRecord, CategoryRecord

from .models import ActiveTicket, FormAnswer, Requester


Embed = Dict[str, Any]

TICKET_GUIDELINES = (
    "> :warning: Failure to follow ticket guidelines and required "
    "information **can** lead to the ticket getting closed."
)


def _field(name: str, value: str, inline: bool = False) -> Dict[str, Any]:
    if len(value) > EMBED_FIELD_VALUE_MAX:
        value = value[:EMBED_FIELD_VALUE_MAX - 3] + "..."
    return {"name": name, "value": value, "inline": inline}


def _member_line(member: Requester) -> str:
    return f"{member.display_name} (@{member.username})"


# =============================================================================
# Opening
# =============================================================================

def format_purchase_info(token: str, status: Optional[str], packages: Sequence[str]) -> str:
    """Verification answer as shown in the intro embed instead of the raw field."""
    return (
        f"* {VERIFICATION_LABEL}: {token}\n"
        f"* Status: {status or 'Unknown'}\n"
        f"* Packages: {', '.join(packages) or 'None'}"
    )


def build_intro_embed(
    category_name: str,
    requester: Requester,
    answers: Sequence[FormAnswer],
    purchase_info: Optional[str] = None,
) -> Embed:
    """
    Build the first embed posted in a new ticket channel.

    Args:
        category_name: Category display name.
        requester: Ticket owner.
        answers: Retained form answers, in form order.
        purchase_info: Summary replacing the verification answer.

    Returns:
        Embed dict.
    """
    fields = []
    for answer in answers:
        if answer.is_verification:
            if purchase_info is None:
                continue
            fields.append(_field("Purchase Info", purchase_info))
        else:
            fields.append(_field(answer.label, answer.value))

    embed: Embed = {
        "title": f"{category_name} ticket - {requester.display_name}",
        "description": TICKET_GUIDELINES,
        "color": EmbedColors.TICKET,
    }
    if fields:
        embed["fields"] = fields
    return embed


def build_staff_thread_notice(role_ids: Sequence[int]) -> str:
    """Seed message of the private staff thread."""
    mentions = " ".join(f"<@&{role_id}>" for role_id in role_ids)
    return (
        f"{mentions}\n"
        "Private staff discussion for this ticket. "
        "Messages here are **not** included in the ticket transcript."
    )


# =============================================================================
# Closure
# =============================================================================

def build_closure_embed(reason: Optional[str]) -> Embed:
    """Closure entry appended to the message log and posted in the channel."""
    return {
        "title": "Ticket closed",
        "description": f"Closure reason:\n> {reason}" if reason else "No reason provided.",
    }


def build_archive_embed(ticket: ActiveTicket, closer: Requester, reason: Optional[str]) -> Embed:
    """Summary posted with the transcript in the archive channel."""
    fields = [
        _field("Category", ticket.category_name, inline=True),
        _field("Channel", f"#{ticket.channel_name}", inline=True),
        _field("Closed By", _member_line(closer), inline=True),
        _field("Owner", _member_line(ticket.requester), inline=True),
    ]
    if reason:
        fields.append(_field("Closure Reason", reason))
    return {
        "title": f"📋 Ticket #{ticket.ticket_id} Closed",
        "color": EmbedColors.BLURPLE,
        "fields": fields,
    }


def build_staff_evidence_embed(ticket: ActiveTicket, message_count: int) -> Embed:
    """Summary posted with the staff thread transcript."""
    return {
        "title": f"🔒 Staff Evidence - Ticket #{ticket.ticket_id}",
        "description": "**STAFF ONLY** - Internal discussion transcript",
        "color": EmbedColors.CLOSED,
        "fields": [
            _field("Category", ticket.category_name, inline=True),
            _field("Channel", f"#{ticket.channel_name}", inline=True),
            _field("Messages", str(message_count), inline=True),
        ],
    }


def build_closed_dm_embed(ticket: ActiveTicket, closer: Requester, reason: Optional[str]) -> Embed:
    """Direct message sent to the ticket owner."""
    fields = [_field("Closed By", _member_line(closer), inline=True)]
    if reason:
        fields.append(_field("Reason", reason))
    return {
        "title": "Your Ticket Was Closed",
        "description": (
            f"Your ticket **#{ticket.channel_name}** in the "
            f"**{ticket.category_name}** category has been closed."
        ),
        "color": EmbedColors.BLURPLE,
        "fields": fields,
    }


def build_export_embed(ticket_id: int, category_name: str, channel_name: str, exporter: Requester) -> Embed:
    """Notice posted with an on-demand transcript export."""
    return {
        "title": f"📄 Ticket #{ticket_id} Transcript Exported",
        "color": EmbedColors.INFO,
        "fields": [
            _field("Category", category_name, inline=True),
            _field("Channel", f"#{channel_name}", inline=True),
            _field("Exported By", _member_line(exporter), inline=True),
        ],
    }


# =============================================================================
# Participants
# =============================================================================

def build_member_notice(member: Requester, actor: Requester, added: bool) -> Embed:
    """Notice posted when staff add or remove a participant."""
    if added:
        return {
            "description": f"{member.mention} was added to the ticket by {actor.mention}.",
            "color": EmbedColors.SUCCESS,
        }
    return {
        "description": f"{member.mention} was removed from the ticket by {actor.mention}.",
        "color": EmbedColors.WARNING,
    }


# =============================================================================
# Panel & Admin
# =============================================================================

def build_panel_embed(categories: Sequence[CategoryRecord]) -> Embed:
    """Opener panel shown above the category select."""
    lines = []
    for category in categories:
        prefix = f"{category['emoji']} " if category.get("emoji") else ""
        description = f" - {category['description']}" if category.get("description") else ""
        lines.append(f"{prefix}**{category['name']}**{description}")

    return {
        "title": "🎫 Support Tickets",
        "description": (
            "Need help? Pick a category below to open a private ticket with the staff team.\n\n"
            + ("\n".join(lines) if lines else "*No ticket categories are available right now.*")
        ),
        "color": EmbedColors.PANEL,
    }


def build_category_list_embed(categories: Sequence[CategoryRecord], field_counts: Dict[int, int]) -> Embed:
    """Admin listing of ticket categories."""
    fields: List[Dict[str, Any]] = []
    for category in categories:
        prefix = f"{category['emoji']} " if category.get("emoji") else ""
        fields.append(_field(
            f"{prefix}{category['name']} (#{category['id']})",
            "\n".join([
                f"Channel category: <#{category['category_id']}>",
                f"Verification: {'Required' if category.get('require_verification') else 'Not required'}",
                f"Fields: {field_counts.get(category['id'], 0)}",
                category.get("description") or "*No description*",
            ]),
        ))
    return {
        "title": "Ticket Categories",
        "description": None if fields else "No ticket categories configured.",
        "color": EmbedColors.INFO,
        "fields": fields[:25],
    }


def build_field_list_embed(category: CategoryRecord, fields: Sequence[CategoryFieldRecord]) -> Embed:
    """Admin listing of a category's form fields."""
    entries = []
    for row in fields:
        bounds = []
        if row.get("min_length") is not None:
            bounds.append(f"min {row['min_length']}")
        if row.get("max_length") is not None:
            bounds.append(f"max {row['max_length']}")
        entries.append(_field(
            f"#{row['id']} {row['label']}",
            "\n".join([
                f"{'Required' if row.get('required') else 'Optional'}, {'short' if row.get('short_field') else 'paragraph'}",
                f"Placeholder: {row.get('placeholder') or '-'}",
                f"Length: {', '.join(bounds) or 'any'}",
            ]),
        ))
    return {
        "title": f"Fields for {category['name']}",
        "description": None if entries else "This category has no form fields.",
        "color": EmbedColors.INFO,
        "fields": entries,
    }


__all__ = [
    "TICKET_GUIDELINES",
    "format_purchase_info",
    "build_intro_embed",
    "build_staff_thread_notice",
    "build_closure_embed",
    "build_archive_embed",
    "build_staff_evidence_embed",
    "build_closed_dm_embed",
    "build_export_embed",
    "build_member_notice",
    "build_panel_embed",
    "build_category_list_embed",
    "build_field_list_embed",
]
