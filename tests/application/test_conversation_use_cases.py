"""Tests for conversation, history and read-marking use cases."""

from __future__ import annotations

import pytest

from app.application.use_cases.conversations import (
    fetch_history,
    get_or_create_conversation,
    list_conversations,
    mark_read_for,
    open_conversation,
    send_message,
    validate_message_content,
)
from app.domain.exceptions import NotAuthorized, ValidationError
from app.infrastructure.models import MessageModel


def test_validate_message_content_trims_and_bounds() -> None:
    assert validate_message_content("  hello  ") == ("hello", None)
    assert validate_message_content("x", "https://cdn/img.png") == ("x", "https://cdn/img.png")

    for bad in ("", "   ", None, 12):
        with pytest.raises(ValidationError):
            validate_message_content(bad)
    with pytest.raises(ValidationError):
        validate_message_content("x" * 11, max_length=10)


def test_send_message_returns_the_receiver(db_session, conversation, alice, bob) -> None:
    message, receiver_id = send_message(
        db_session, sender_id=alice.id, conversation_id=conversation.id, content="hello"
    )

    assert receiver_id == bob.id
    assert message.id is not None
    assert message.created_at is not None
    assert message.is_read is False


def test_send_message_by_outsider_is_rejected_without_writes(
    db_session, conversation, carol
) -> None:
    with pytest.raises(NotAuthorized):
        send_message(
            db_session, sender_id=carol.id, conversation_id=conversation.id, content="spam"
        )

    assert db_session.query(MessageModel).count() == 0


def test_history_requires_participation(db_session, conversation, carol) -> None:
    with pytest.raises(NotAuthorized):
        fetch_history(db_session, user_id=carol.id, conversation_id=conversation.id)


def test_open_conversation_returns_page_then_marks_it_read(
    db_session, conversation, alice, bob
) -> None:
    send_message(db_session, sender_id=alice.id, conversation_id=conversation.id, content="hello")

    first_view = open_conversation(db_session, user_id=bob.id, conversation_id=conversation.id)
    second_view = open_conversation(db_session, user_id=bob.id, conversation_id=conversation.id)

    assert [m.is_read for m in first_view] == [False]
    assert [m.is_read for m in second_view] == [True]


def test_opening_own_messages_leaves_them_unread(db_session, conversation, alice) -> None:
    send_message(db_session, sender_id=alice.id, conversation_id=conversation.id, content="hi")

    open_conversation(db_session, user_id=alice.id, conversation_id=conversation.id)
    history = fetch_history(db_session, user_id=alice.id, conversation_id=conversation.id)

    assert [m.is_read for m in history] == [False]


def test_opening_an_older_page_does_not_mark_newer_messages(
    db_session, conversation, alice, bob
) -> None:
    for index in range(3):
        send_message(
            db_session, sender_id=alice.id, conversation_id=conversation.id, content=f"m{index}"
        )

    older = open_conversation(
        db_session, user_id=bob.id, conversation_id=conversation.id, page=2, limit=2
    )
    history = fetch_history(db_session, user_id=bob.id, conversation_id=conversation.id)

    assert [m.content for m in older] == ["m0"]
    assert [(m.content, m.is_read) for m in history] == [
        ("m0", True),
        ("m1", False),
        ("m2", False),
    ]


def test_mark_read_for_returns_number_of_updated_messages(
    db_session, conversation, alice, bob
) -> None:
    send_message(db_session, sender_id=alice.id, conversation_id=conversation.id, content="a")
    send_message(db_session, sender_id=alice.id, conversation_id=conversation.id, content="b")

    assert mark_read_for(db_session, user_id=bob.id, conversation_id=conversation.id) == 2
    assert mark_read_for(db_session, user_id=bob.id, conversation_id=conversation.id) == 0


def test_get_or_create_conversation_reuses_existing(db_session, conversation, alice, bob) -> None:
    existing, created = get_or_create_conversation(
        db_session, user_id=bob.id, participant_id=alice.id, listing_id=7
    )

    assert created is False
    assert existing.id == conversation.id


def test_get_or_create_conversation_creates_new_thread(db_session, alice, carol) -> None:
    started, created = get_or_create_conversation(
        db_session, user_id=alice.id, participant_id=carol.id
    )

    assert created is True
    assert started.has_participant(alice.id)
    assert started.counterpart_of(alice.id) == carol.id


def test_get_or_create_conversation_rejects_self_and_unknown(db_session, alice) -> None:
    with pytest.raises(ValidationError):
        get_or_create_conversation(db_session, user_id=alice.id, participant_id=alice.id)
    with pytest.raises(ValidationError):
        get_or_create_conversation(db_session, user_id=alice.id, participant_id=alice.id + 99)


def test_list_conversations_counts_unread(db_session, conversation, alice, bob) -> None:
    send_message(db_session, sender_id=bob.id, conversation_id=conversation.id, content="hey")

    summaries = list_conversations(db_session, user_id=alice.id)

    assert len(summaries) == 1
    assert summaries[0].unread_count == 1
    assert summaries[0].last_message_content == "hey"
