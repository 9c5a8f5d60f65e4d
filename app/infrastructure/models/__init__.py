"""ORM models used by the application infrastructure."""

from .user import UserModel
from .conversation import ConversationModel
from .message import MessageModel
from .notification import NotificationModel

__all__ = [
    "UserModel",
    "ConversationModel",
    "MessageModel",
    "NotificationModel",
]
