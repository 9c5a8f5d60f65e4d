"""Use cases for listing and starting conversations."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Conversation, ConversationSummary
from app.domain.exceptions import ValidationError
from app.infrastructure.repositories import ConversationRepository, UserRepository


def list_conversations(session: Session, *, user_id: int) -> Sequence[ConversationSummary]:
    """Return the inbox of ``user_id``, most recent activity first."""

    return ConversationRepository(session).list_summaries_for_user(user_id)


def get_or_create_conversation(
    session: Session,
    *,
    user_id: int,
    participant_id: int,
    listing_id: int | None = None,
) -> tuple[Conversation, bool]:
    """Return the conversation between both users, creating it when missing.

    The boolean tells whether a new conversation was created.
    """

    if participant_id == user_id:
        raise ValidationError("Cannot start conversation with yourself")

    participant = UserRepository(session).get(participant_id)
    if participant is None or not participant.is_active:
        raise ValidationError("Participant not found")

    repository = ConversationRepository(session)
    existing = repository.find_between(user_id, participant_id, listing_id=listing_id)
    if existing is not None:
        return existing, False

    conversation = repository.create(
        Conversation(
            id=None,
            participant1_id=user_id,
            participant2_id=participant_id,
            listing_id=listing_id,
        )
    )
    return conversation, True


__all__ = ["get_or_create_conversation", "list_conversations"]
