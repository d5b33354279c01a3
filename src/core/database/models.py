"""
Ticketeer - Database Type Definitions
=====================================

TypedDict definitions for database records.
"""

from typing import Optional, TypedDict


class CategoryRecord(TypedDict, total=False):
    """Type for ticket category records."""
    id: int
    name: str
    description: Optional[str]
    emoji: Optional[str]
    category_id: int
    require_verification: int


class CategoryFieldRecord(TypedDict, total=False):
    """Type for ticket category field records."""
    id: int
    category: int
    label: str
    placeholder: Optional[str]
    required: int
    short_field: int
    min_length: Optional[int]
    max_length: Optional[int]


class TicketRecord(TypedDict, total=False):
    """Type for ticket records."""
    id: int
    category: int
    ticket_name: str
    channel_id: int
    user_id: int
    user_username: str
    user_display_name: str
    opened_at: float
    closed_at: Optional[float]
    staff_thread_id: Optional[int]


class TicketMessageRecord(TypedDict, total=False):
    """Type for logged ticket messages."""
    id: int
    ticket: int
    message_id: Optional[int]
    author_id: int
    display_name: str
    avatar: Optional[str]
    content: Optional[str]
    sent_at: float
    edited_at: Optional[float]


class TicketMemberRecord(TypedDict, total=False):
    """Type for ticket participant records."""
    ticket: int
    user_id: int
    added_by: int
    added_at: float
    removed: int


__all__ = [
    "CategoryRecord",
    "CategoryFieldRecord",
    "TicketRecord",
    "TicketMessageRecord",
    "TicketMemberRecord",
]
