"""Domain entities exposed by the application."""

from .conversation import Conversation, ConversationSummary
from .message import Message
from .notification import Notification, NotificationType
from .user import User

__all__ = [
    "Conversation",
    "ConversationSummary",
    "Message",
    "Notification",
    "NotificationType",
    "User",
]
