"""Use cases for storing and reading chat messages."""

from __future__ import annotations

from typing import Callable

from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.entities import Conversation, Message
from app.domain.exceptions import NotAuthorized, ValidationError
from app.infrastructure.realtime import participant_conversation
from app.infrastructure.repositories import MessageRepository
from app.utils import now_in_app_timezone

MAX_HISTORY_LIMIT = 100
MAX_ATTACHMENT_URL_LENGTH = 500
_NOT_FOUND = "Conversation not found"


def validate_message_content(
    content: object, attachment_url: object = None, *, max_length: int | None = None
) -> tuple[str, str | None]:
    """Return the normalized content and attachment or raise ``ValidationError``."""

    max_length = max_length or get_settings().message_max_length
    if not isinstance(content, str):
        raise ValidationError("Message content must be text")
    normalized = content.strip()
    if not normalized:
        raise ValidationError("Message content cannot be empty")
    if len(normalized) > max_length:
        raise ValidationError(f"Message content cannot exceed {max_length} characters")

    if attachment_url is not None:
        if not isinstance(attachment_url, str) or len(attachment_url) > MAX_ATTACHMENT_URL_LENGTH:
            raise ValidationError("Invalid attachment reference")
        attachment_url = attachment_url or None
    return normalized, attachment_url


def require_participant(session: Session, user_id: int, conversation_id: int) -> Conversation:
    """Return the conversation or raise ``NotAuthorized`` for outsiders."""

    conversation = participant_conversation(session, user_id, conversation_id)
    if conversation is None:
        raise NotAuthorized(_NOT_FOUND)
    return conversation


def send_message(
    session: Session,
    *,
    sender_id: int,
    conversation_id: int,
    content: str,
    attachment_url: str | None = None,
    on_authorized: Callable[[], None] | None = None,
) -> tuple[Message, int]:
    """Persist a message from a verified participant.

    Returns the stored message and the identifier of the receiving participant.
    Content must already be validated with :func:`validate_message_content`.
    """

    conversation = require_participant(session, sender_id, conversation_id)
    if on_authorized is not None:
        on_authorized()
    message = MessageRepository(session).create_with_pointer(
        Message(
            id=None,
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=content,
            attachment_url=attachment_url,
            created_at=now_in_app_timezone(),
        )
    )
    return message, conversation.counterpart_of(sender_id)


def fetch_history(
    session: Session,
    *,
    user_id: int,
    conversation_id: int,
    page: int = 1,
    limit: int | None = None,
) -> list[Message]:
    """Return one page of history, oldest first. Page 1 holds the newest messages."""

    require_participant(session, user_id, conversation_id)
    limit = min(max(limit or get_settings().history_page_size, 1), MAX_HISTORY_LIMIT)
    offset = (max(page, 1) - 1) * limit
    return list(
        MessageRepository(session).list_for_conversation(
            int(conversation_id), limit=limit, offset=offset
        )
    )


def mark_read_for(
    session: Session,
    *,
    user_id: int,
    conversation_id: int,
    up_to_message_id: int | None = None,
) -> int:
    """Mark the counterpart's messages as read for ``user_id``.

    Only messages with an id up to ``up_to_message_id`` are touched when it is
    given. The reader's own messages never change.
    """

    require_participant(session, user_id, conversation_id)
    return MessageRepository(session).mark_read_for(
        int(conversation_id), reader_id=user_id, up_to_message_id=up_to_message_id
    )


def open_conversation(
    session: Session,
    *,
    user_id: int,
    conversation_id: int,
    page: int = 1,
    limit: int | None = None,
) -> list[Message]:
    """Fetch a history page and mark everything up to its newest message as read.

    The page is returned as it was before the read flags changed.
    """

    messages = fetch_history(
        session, user_id=user_id, conversation_id=conversation_id, page=page, limit=limit
    )
    if messages:
        mark_read_for(
            session,
            user_id=user_id,
            conversation_id=conversation_id,
            up_to_message_id=messages[-1].id,
        )
    return messages


__all__ = [
    "MAX_HISTORY_LIMIT",
    "fetch_history",
    "mark_read_for",
    "open_conversation",
    "require_participant",
    "send_message",
    "validate_message_content",
]
