"""Persistence helpers for conversation entities."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session, aliased

from app.domain.entities import Conversation, ConversationSummary
from app.infrastructure.models import ConversationModel, MessageModel
from app.utils import ensure_app_timezone, now_in_app_naive_datetime

from .errors import storage_errors


class ConversationRepository:
    """Provide lookups and creation for :class:`Conversation` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, conversation_id: int) -> Conversation | None:
        model = self.session.get(ConversationModel, conversation_id)
        return self._to_entity(model) if model else None

    def get_for_participant(
        self, conversation_id: int, user_id: int
    ) -> Conversation | None:
        """Return the conversation only when ``user_id`` takes part in it."""

        model = (
            self.session.query(ConversationModel)
            .filter(ConversationModel.id == conversation_id)
            .filter(
                or_(
                    ConversationModel.participant1_id == user_id,
                    ConversationModel.participant2_id == user_id,
                )
            )
            .first()
        )
        return self._to_entity(model) if model else None

    def find_between(
        self, user_id: int, other_user_id: int, *, listing_id: int | None = None
    ) -> Conversation | None:
        """Return an existing conversation for the pair, any order of participants.

        Without ``listing_id`` any conversation between the two users matches.
        """

        query = self.session.query(ConversationModel).filter(
            or_(
                and_(
                    ConversationModel.participant1_id == user_id,
                    ConversationModel.participant2_id == other_user_id,
                ),
                and_(
                    ConversationModel.participant1_id == other_user_id,
                    ConversationModel.participant2_id == user_id,
                ),
            )
        )
        if listing_id is not None:
            query = query.filter(ConversationModel.listing_id == listing_id)
        model = query.order_by(ConversationModel.id.asc()).first()
        return self._to_entity(model) if model else None

    def create(self, conversation: Conversation) -> Conversation:
        now = now_in_app_naive_datetime()
        model = ConversationModel(
            participant1_id=conversation.participant1_id,
            participant2_id=conversation.participant2_id,
            listing_id=conversation.listing_id,
            last_message_id=None,
            created_at=now,
            updated_at=now,
        )
        with storage_errors(self.session, "create the conversation"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def list_summaries_for_user(self, user_id: int) -> Sequence[ConversationSummary]:
        """Return the inbox of ``user_id`` ordered by most recent activity."""

        last_message = aliased(MessageModel)
        unread = (
            select(func.count(MessageModel.id))
            .where(
                MessageModel.conversation_id == ConversationModel.id,
                MessageModel.sender_id != user_id,
                MessageModel.is_read.is_(False),
            )
            .correlate(ConversationModel)
            .scalar_subquery()
        )
        with storage_errors(self.session, "load the conversations"):
            rows = (
                self.session.query(ConversationModel, last_message, unread.label("unread"))
                .outerjoin(last_message, last_message.id == ConversationModel.last_message_id)
                .filter(
                    or_(
                        ConversationModel.participant1_id == user_id,
                        ConversationModel.participant2_id == user_id,
                    )
                )
                .order_by(
                    func.coalesce(last_message.created_at, ConversationModel.created_at).desc(),
                    ConversationModel.id.desc(),
                )
                .all()
            )

        summaries: list[ConversationSummary] = []
        for model, last, unread_count in rows:
            counterpart = (
                model.participant2 if model.participant1_id == user_id else model.participant1
            )
            summaries.append(
                ConversationSummary(
                    conversation=self._to_entity(model),
                    counterpart_id=counterpart.id,
                    counterpart_first_name=counterpart.first_name,
                    counterpart_last_name=counterpart.last_name or "",
                    counterpart_is_online=bool(counterpart.is_online),
                    last_message_content=last.content if last is not None else None,
                    last_message_at=ensure_app_timezone(last.created_at)
                    if last is not None
                    else None,
                    unread_count=int(unread_count or 0),
                )
            )
        return summaries

    @staticmethod
    def _to_entity(model: ConversationModel) -> Conversation:
        return Conversation(
            id=model.id,
            participant1_id=model.participant1_id,
            participant2_id=model.participant2_id,
            listing_id=model.listing_id,
            last_message_id=model.last_message_id,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["ConversationRepository"]
