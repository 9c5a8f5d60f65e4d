"""Domain entity representing a two-party conversation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Conversation:
    """Durable thread between exactly two participants."""

    id: int | None
    participant1_id: int
    participant2_id: int
    listing_id: int | None = None
    last_message_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_participant(self, user_id: int) -> bool:
        """Return ``True`` when ``user_id`` is one of the two participants."""

        return user_id in (self.participant1_id, self.participant2_id)

    def counterpart_of(self, user_id: int) -> int:
        """Return the identifier of the participant that is not ``user_id``."""

        if user_id == self.participant1_id:
            return self.participant2_id
        if user_id == self.participant2_id:
            return self.participant1_id
        raise ValueError(f"User {user_id} is not part of conversation {self.id}")


@dataclass
class ConversationSummary:
    """Conversation enriched with the data shown in an inbox listing."""

    conversation: Conversation
    counterpart_id: int
    counterpart_first_name: str
    counterpart_last_name: str
    counterpart_is_online: bool
    last_message_content: str | None
    last_message_at: datetime | None
    unread_count: int


__all__ = ["Conversation", "ConversationSummary"]
