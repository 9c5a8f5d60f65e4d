"""Use cases for conversations and their messages."""

from .conversations import get_or_create_conversation, list_conversations
from .messages import (
    MAX_HISTORY_LIMIT,
    fetch_history,
    mark_read_for,
    open_conversation,
    require_participant,
    send_message,
    validate_message_content,
)
from .pipeline import MessagePipeline, SendState

__all__ = [
    "MAX_HISTORY_LIMIT",
    "MessagePipeline",
    "SendState",
    "fetch_history",
    "get_or_create_conversation",
    "list_conversations",
    "mark_read_for",
    "open_conversation",
    "require_participant",
    "send_message",
    "validate_message_content",
]
