"""Tests for the persist-then-broadcast message pipeline."""

from __future__ import annotations

import threading

import anyio
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.application.use_cases.conversations import MessagePipeline, SendState
from app.domain.exceptions import NotAuthorized, PersistenceError, ValidationError
from app.infrastructure.database import engine
from app.infrastructure.models import MessageModel, NotificationModel
from app.infrastructure.realtime import (
    Connection,
    RealtimeHub,
    events,
    install_realtime_hub,
    uninstall_realtime_hub,
)
from app.infrastructure.repositories import ConversationRepository


class RecordingTransport:
    def __init__(self) -> None:
        self.frames: list[dict] = []

    async def send_json(self, data) -> None:
        self.frames.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.frames]


@pytest.fixture
def hub():
    hub = install_realtime_hub(RealtimeHub())
    yield hub
    uninstall_realtime_hub()


async def _connect(hub: RealtimeHub, user) -> Connection:
    connection = Connection(RecordingTransport(), user)
    await hub.presence.connect(connection)
    return connection


@pytest.mark.anyio
async def test_send_persists_then_fans_out(hub, db_session, conversation, alice, bob) -> None:
    sender = await _connect(hub, alice)
    receiver = await _connect(hub, bob)
    await hub.broadcaster.join(receiver, conversation.id)
    sender.transport.frames.clear()
    receiver.transport.frames.clear()

    pipeline = MessagePipeline(hub)
    message = await pipeline.send(
        sender_id=alice.id,
        conversation_id=conversation.id,
        content=" hello ",
        origin=sender,
    )

    assert pipeline.state is SendState.ACKNOWLEDGED
    assert message.content == "hello"
    assert sender.transport.events() == [events.MESSAGE_SENT]
    assert sender.transport.frames[0]["data"]["id"] == message.id
    assert receiver.transport.events() == [
        events.NEW_MESSAGE,
        events.NEW_CONVERSATION_MESSAGE,
        events.NEW_NOTIFICATION,
    ]
    live = receiver.transport.frames[0]["data"]
    assert live["id"] == message.id
    assert live["first_name"] == "Alice"
    assert receiver.transport.frames[1]["data"]["conversation_id"] == conversation.id
    notification = receiver.transport.frames[2]["data"]
    assert notification["type"] == "NEW_MESSAGE"
    assert notification["metadata"] == {
        "conversation_id": conversation.id,
        "message_id": message.id,
    }

    stored = ConversationRepository(db_session).get(conversation.id)
    assert stored.last_message_id == message.id


@pytest.mark.anyio
async def test_outsider_send_is_rejected_before_anything_is_stored(
    hub, db_session, conversation, alice, carol
) -> None:
    watcher = await _connect(hub, alice)
    await hub.broadcaster.join(watcher, conversation.id)
    intruder = await _connect(hub, carol)
    watcher.transport.frames.clear()

    pipeline = MessagePipeline(hub)
    with pytest.raises(NotAuthorized):
        await pipeline.send(
            sender_id=carol.id,
            conversation_id=conversation.id,
            content="let me in",
            origin=intruder,
        )

    assert pipeline.state is SendState.REJECTED
    assert db_session.query(MessageModel).count() == 0
    assert watcher.transport.frames == []


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("conversation_id", "content"),
    [
        ("abc", "hello"),
        (None, "hello"),
        (10**30, "hello"),
        (0, "hello"),
        (1, ""),
        (1, "x" * 1001),
    ],
)
async def test_invalid_sends_are_rejected(
    hub, db_session, conversation, alice, conversation_id, content
) -> None:
    pipeline = MessagePipeline(hub)

    with pytest.raises(ValidationError):
        await pipeline.send(sender_id=alice.id, conversation_id=conversation_id, content=content)

    assert pipeline.state is SendState.REJECTED
    assert db_session.query(MessageModel).count() == 0


@pytest.mark.anyio
async def test_offline_receiver_still_gets_a_stored_notification(
    hub, db_session, conversation, alice, bob
) -> None:
    await MessagePipeline(hub).send(
        sender_id=alice.id, conversation_id=conversation.id, content="are you there?"
    )

    notifications = db_session.query(NotificationModel).all()
    assert [(n.user_id, n.type) for n in notifications] == [(bob.id, "NEW_MESSAGE")]


@pytest.mark.anyio
async def test_sends_from_both_sides_arrive_in_commit_order(
    hub, conversation, alice, bob
) -> None:
    first = await _connect(hub, alice)
    second = await _connect(hub, bob)
    for connection in (first, second):
        await hub.broadcaster.join(connection, conversation.id)
        connection.transport.frames.clear()

    pipeline = MessagePipeline(hub, notify_receiver=False)
    sent = []
    for index, sender in enumerate([alice, bob, alice]):
        sent.append(
            await pipeline.send(
                sender_id=sender.id, conversation_id=conversation.id, content=f"m{index}"
            )
        )

    for connection in (first, second):
        received = [
            frame["data"]["id"]
            for frame in connection.transport.frames
            if frame["event"] == events.NEW_MESSAGE
        ]
        assert received == [message.id for message in sent]


@pytest.mark.anyio
async def test_concurrent_senders_are_broadcast_in_commit_order(
    hub, db_session, conversation, alice, bob
) -> None:
    reader = await _connect(hub, bob)
    await hub.broadcaster.join(reader, conversation.id)
    reader.transport.frames.clear()

    async def send_many(sender) -> None:
        pipeline = MessagePipeline(hub, notify_receiver=False)
        for index in range(5):
            await pipeline.send(
                sender_id=sender.id,
                conversation_id=conversation.id,
                content=f"{sender.first_name} {index}",
            )

    async with anyio.create_task_group() as tg:
        tg.start_soon(send_many, alice)
        tg.start_soon(send_many, bob)

    received = [
        frame["data"]["id"]
        for frame in reader.transport.frames
        if frame["event"] == events.NEW_MESSAGE
    ]
    stored = [row.id for row in db_session.query(MessageModel).order_by(MessageModel.id)]
    assert len(received) == 10
    assert received == stored
    assert ConversationRepository(db_session).get(conversation.id).last_message_id == received[-1]


class CommitFailingSession(Session):
    def commit(self) -> None:
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


@pytest.mark.anyio
async def test_storage_failure_rejects_without_broadcasting(
    hub, db_session, conversation, alice, bob
) -> None:
    reader = await _connect(hub, bob)
    await hub.broadcaster.join(reader, conversation.id)
    sender = await _connect(hub, alice)
    reader.transport.frames.clear()
    sender.transport.frames.clear()

    pipeline = MessagePipeline(hub, session_factory=lambda: CommitFailingSession(bind=engine))
    with pytest.raises(PersistenceError):
        await pipeline.send(
            sender_id=alice.id,
            conversation_id=conversation.id,
            content="never stored",
            origin=sender,
        )

    assert pipeline.state is SendState.REJECTED
    assert reader.transport.frames == []
    assert sender.transport.frames == []
    assert db_session.query(MessageModel).count() == 0
    assert ConversationRepository(db_session).get(conversation.id).last_message_id is None


@pytest.mark.anyio
async def test_cancelled_sender_does_not_undo_the_write(
    hub, db_session, conversation, alice, bob
) -> None:
    reader = await _connect(hub, bob)
    await hub.broadcaster.join(reader, conversation.id)
    reader.transport.frames.clear()
    committing = threading.Event()
    release = threading.Event()

    class SlowCommitSession(Session):
        def commit(self) -> None:
            committing.set()
            release.wait(5)
            super().commit()

    pipeline = MessagePipeline(
        hub,
        session_factory=lambda: SlowCommitSession(bind=engine),
        notify_receiver=False,
    )

    async with anyio.create_task_group() as tg:
        tg.start_soon(
            lambda: pipeline.send(
                sender_id=alice.id, conversation_id=conversation.id, content="in flight"
            )
        )
        assert await anyio.to_thread.run_sync(committing.wait, 5)
        tg.cancel_scope.cancel()
        release.set()

    rows = db_session.query(MessageModel).all()
    assert [row.content for row in rows] == ["in flight"]
    assert [frame["event"] for frame in reader.transport.frames] == [
        events.NEW_MESSAGE,
        events.NEW_CONVERSATION_MESSAGE,
    ]
