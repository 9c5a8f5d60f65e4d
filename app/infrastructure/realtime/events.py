"""Names of the events exchanged over the realtime channel."""

PERSONAL_GROUP_PREFIX = "user:"
CONVERSATION_GROUP_PREFIX = "conversation:"

# client -> server
JOIN_CONVERSATION = "join_conversation"
LEAVE_CONVERSATION = "leave_conversation"
SEND_MESSAGE = "send_message"
TYPING_START = "typing_start"
TYPING_STOP = "typing_stop"
PING = "ping"

# server -> client
CONNECTED = "connected"
NEW_MESSAGE = "new_message"
NEW_CONVERSATION_MESSAGE = "new_conversation_message"
MESSAGE_SENT = "message_sent"
NEW_NOTIFICATION = "new_notification"
USER_ONLINE = "user_online"
USER_OFFLINE = "user_offline"
USER_TYPING = "user_typing"
USER_STOPPED_TYPING = "user_stopped_typing"
PONG = "pong"
ERROR = "error"


def personal_group(user_id: int) -> str:
    """Return the group holding every connection of ``user_id``."""

    return f"{PERSONAL_GROUP_PREFIX}{user_id}"


def conversation_group(conversation_id: int) -> str:
    """Return the group of connections that joined ``conversation_id``."""

    return f"{CONVERSATION_GROUP_PREFIX}{conversation_id}"
