"""Domain entity representing a chat message."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Message:
    """One durable entry of a conversation."""

    id: int | None
    conversation_id: int
    sender_id: int
    content: str
    attachment_url: str | None = None
    is_read: bool = False
    created_at: datetime | None = None
    sender_first_name: str | None = None
    sender_last_name: str | None = None
    sender_profile_picture_url: str | None = None


__all__ = ["Message"]
