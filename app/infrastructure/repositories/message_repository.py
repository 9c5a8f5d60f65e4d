"""Persistence helpers for chat messages."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Message
from app.domain.exceptions import PersistenceError
from app.infrastructure.models import ConversationModel, MessageModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone, now_in_app_timezone

from .errors import storage_errors


class MessageRepository:
    """Store messages and keep the conversation pointer in sync."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, message_id: int) -> Message | None:
        model = self.session.get(MessageModel, message_id)
        return self._to_entity(model) if model else None

    def create_with_pointer(self, message: Message) -> Message:
        """Insert ``message`` and move the conversation's last-message pointer.

        Both writes belong to one transaction: either the message exists and the
        conversation points at it, or neither change is kept.
        """

        created_at = ensure_app_naive_datetime(message.created_at or now_in_app_timezone())
        model = MessageModel(
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            content=message.content,
            attachment_url=message.attachment_url,
            is_read=False,
            created_at=created_at,
        )
        with storage_errors(self.session, "store the message"):
            self.session.add(model)
            self.session.flush()
            updated = (
                self.session.query(ConversationModel)
                .filter(ConversationModel.id == message.conversation_id)
                .update(
                    {
                        ConversationModel.last_message_id: model.id,
                        ConversationModel.updated_at: created_at,
                    },
                    synchronize_session=False,
                )
            )
            if updated != 1:
                self.session.rollback()
                raise PersistenceError(
                    f"Conversation {message.conversation_id} no longer exists"
                )
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def list_for_conversation(
        self, conversation_id: int, *, limit: int, offset: int = 0
    ) -> Sequence[Message]:
        """Return one page of history, oldest first; page 0 holds the newest."""

        query = (
            self.session.query(MessageModel)
            .filter(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with storage_errors(self.session, "load the message history"):
            models = query.all()
        models.reverse()
        return [self._to_entity(model) for model in models]

    def mark_read_for(
        self,
        conversation_id: int,
        *,
        reader_id: int,
        up_to_message_id: int | None = None,
    ) -> int:
        """Flag as read the counterpart's messages, optionally up to a watermark."""

        query = (
            self.session.query(MessageModel)
            .filter(MessageModel.conversation_id == conversation_id)
            .filter(MessageModel.sender_id != reader_id)
            .filter(MessageModel.is_read.is_(False))
        )
        if up_to_message_id is not None:
            query = query.filter(MessageModel.id <= up_to_message_id)
        with storage_errors(self.session, "mark messages as read"):
            updated = query.update({MessageModel.is_read: True}, synchronize_session=False)
            self.session.commit()
        return int(updated or 0)

    @staticmethod
    def _to_entity(model: MessageModel) -> Message:
        sender = model.sender
        return Message(
            id=model.id,
            conversation_id=model.conversation_id,
            sender_id=model.sender_id,
            content=model.content,
            attachment_url=model.attachment_url,
            is_read=bool(model.is_read),
            created_at=ensure_app_timezone(model.created_at),
            sender_first_name=sender.first_name if sender is not None else None,
            sender_last_name=sender.last_name if sender is not None else None,
            sender_profile_picture_url=sender.profile_picture_url
            if sender is not None
            else None,
        )


__all__ = ["MessageRepository"]
