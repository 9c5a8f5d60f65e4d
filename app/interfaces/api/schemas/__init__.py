from .auth import Token
from .conversation import (
    ConversationCreate,
    ConversationListRead,
    ConversationStartedRead,
    ConversationSummaryRead,
    MessageCreate,
    MessageListRead,
    MessageRead,
)
from .notification import (
    NotificationPageRead,
    NotificationRead,
    PaginationRead,
    StatusMessage,
    UnreadCountRead,
)

__all__ = [
    "ConversationCreate",
    "ConversationListRead",
    "ConversationStartedRead",
    "ConversationSummaryRead",
    "MessageCreate",
    "MessageListRead",
    "MessageRead",
    "NotificationPageRead",
    "NotificationRead",
    "PaginationRead",
    "StatusMessage",
    "Token",
    "UnreadCountRead",
]
