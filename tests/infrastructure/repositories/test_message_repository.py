"""Tests for message persistence and the conversation pointer."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.domain.entities import Message
from app.domain.exceptions import PersistenceError
from app.infrastructure.models import MessageModel
from app.infrastructure.repositories import ConversationRepository, MessageRepository
from app.utils import now_in_app_timezone


def _message(conversation_id: int, sender_id: int, content: str, *, offset: int = 0) -> Message:
    return Message(
        id=None,
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content,
        created_at=now_in_app_timezone() + timedelta(seconds=offset),
    )


def test_create_moves_the_last_message_pointer(db_session, conversation, alice) -> None:
    repository = MessageRepository(db_session)

    first = repository.create_with_pointer(_message(conversation.id, alice.id, "hi"))
    second = repository.create_with_pointer(_message(conversation.id, alice.id, "again", offset=1))

    stored = ConversationRepository(db_session).get(conversation.id)
    assert stored.last_message_id == second.id
    assert first.id < second.id
    assert second.is_read is False
    assert second.sender_first_name == "Alice"


def test_create_for_missing_conversation_keeps_nothing(db_session, alice) -> None:
    repository = MessageRepository(db_session)

    with pytest.raises(PersistenceError):
        repository.create_with_pointer(_message(999, alice.id, "lost"))

    assert db_session.query(MessageModel).count() == 0


def test_history_pages_are_oldest_first(db_session, conversation, alice, bob) -> None:
    repository = MessageRepository(db_session)
    for index in range(5):
        sender = alice if index % 2 == 0 else bob
        repository.create_with_pointer(
            _message(conversation.id, sender.id, f"m{index}", offset=index)
        )

    newest = repository.list_for_conversation(conversation.id, limit=2)
    older = repository.list_for_conversation(conversation.id, limit=2, offset=2)

    assert [m.content for m in newest] == ["m3", "m4"]
    assert [m.content for m in older] == ["m1", "m2"]


def test_mark_read_only_touches_counterpart_messages_up_to_watermark(
    db_session, conversation, alice, bob
) -> None:
    repository = MessageRepository(db_session)
    from_bob = repository.create_with_pointer(_message(conversation.id, bob.id, "one"))
    from_alice = repository.create_with_pointer(
        _message(conversation.id, alice.id, "two", offset=1)
    )
    later = repository.create_with_pointer(_message(conversation.id, bob.id, "three", offset=2))

    updated = repository.mark_read_for(
        conversation.id, reader_id=alice.id, up_to_message_id=from_alice.id
    )

    assert updated == 1
    assert repository.get(from_bob.id).is_read is True
    assert repository.get(from_alice.id).is_read is False
    assert repository.get(later.id).is_read is False


def test_history_read_reports_storage_outage(db_session, conversation) -> None:
    MessageModel.__table__.drop(bind=db_session.get_bind())

    with pytest.raises(PersistenceError):
        MessageRepository(db_session).list_for_conversation(conversation.id, limit=10)
