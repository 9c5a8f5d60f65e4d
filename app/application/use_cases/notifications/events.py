"""Notifications emitted as a side effect of conversation activity."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import Message, Notification, NotificationType

from .service import create_notification


def notify_new_message(
    session: Session,
    *,
    message: Message,
    receiver_id: int,
) -> Notification:
    """Tell ``receiver_id`` that a new message arrived in a conversation."""

    sender_name = message.sender_first_name or "someone"
    return create_notification(
        session,
        user_id=receiver_id,
        type=NotificationType.NEW_MESSAGE,
        title="New Message",
        content=f"New message from {sender_name}",
        link=f"/messages/{message.conversation_id}",
        metadata={"conversation_id": message.conversation_id, "message_id": message.id},
    )


__all__ = ["notify_new_message"]
