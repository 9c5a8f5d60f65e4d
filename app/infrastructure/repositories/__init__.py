"""Repository implementations for infrastructure layer."""

from .conversation_repository import ConversationRepository
from .errors import storage_errors
from .message_repository import MessageRepository
from .notification_repository import NotificationRepository
from .user_repository import UserRepository

__all__ = [
    "ConversationRepository",
    "MessageRepository",
    "NotificationRepository",
    "UserRepository",
    "storage_errors",
]
