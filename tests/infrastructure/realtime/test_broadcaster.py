"""Tests for group membership and event fan-out."""

from __future__ import annotations

import pytest

from app.domain.entities import User
from app.infrastructure.realtime import Connection, RoomBroadcaster, events


class RecordingTransport:
    def __init__(self) -> None:
        self.frames: list[dict] = []

    async def send_json(self, data) -> None:
        self.frames.append(data)


class BrokenTransport:
    async def send_json(self, data) -> None:
        raise RuntimeError("socket closed")


class AllowList:
    """Membership stub granting access to the listed (user, conversation) pairs."""

    def __init__(self, *pairs: tuple[int, int]) -> None:
        self.pairs = set(pairs)

    async def is_participant(self, user_id: int, conversation_id: int) -> bool:
        return (user_id, conversation_id) in self.pairs


def _connection(user_id: int, transport=None) -> Connection:
    user = User(
        id=user_id,
        email=f"user{user_id}@example.com",
        password="hash",
        first_name=f"User{user_id}",
        last_name="",
    )
    return Connection(transport or RecordingTransport(), user)


@pytest.mark.anyio
async def test_join_is_silently_denied_for_non_participants() -> None:
    broadcaster = RoomBroadcaster(AllowList((1, 10)))
    outsider = _connection(3)
    await broadcaster.attach(outsider)

    joined = await broadcaster.join(outsider, 10)

    assert joined is False
    assert outsider.rooms == set()
    assert outsider.transport.frames == []
    assert await broadcaster.members(events.conversation_group(10)) == []


@pytest.mark.anyio
async def test_publish_reaches_members_in_order() -> None:
    broadcaster = RoomBroadcaster(AllowList((1, 10), (2, 10)))
    first = _connection(1)
    second = _connection(2)
    for connection in (first, second):
        await broadcaster.attach(connection)
        assert await broadcaster.join(connection, 10)

    group = events.conversation_group(10)
    for index in range(3):
        await broadcaster.publish(group, events.NEW_MESSAGE, {"n": index})

    for connection in (first, second):
        assert [frame["data"]["n"] for frame in connection.transport.frames] == [0, 1, 2]
        assert {frame["event"] for frame in connection.transport.frames} == {events.NEW_MESSAGE}


@pytest.mark.anyio
async def test_publish_can_exclude_the_originating_connection() -> None:
    broadcaster = RoomBroadcaster(AllowList((1, 10), (2, 10)))
    sender = _connection(1)
    other = _connection(2)
    for connection in (sender, other):
        await broadcaster.join(connection, 10)

    delivered = await broadcaster.publish(
        events.conversation_group(10), events.USER_TYPING, {}, exclude=sender
    )

    assert delivered == 1
    assert sender.transport.frames == []
    assert len(other.transport.frames) == 1


@pytest.mark.anyio
async def test_failed_delivery_does_not_stop_the_fan_out() -> None:
    broadcaster = RoomBroadcaster(AllowList())
    broken = _connection(1, BrokenTransport())
    healthy = _connection(1)
    await broadcaster.attach(broken)
    await broadcaster.attach(healthy)

    delivered = await broadcaster.publish(
        events.personal_group(1), events.NEW_NOTIFICATION, {"id": 1}
    )

    assert delivered == 1
    assert healthy.transport.frames == [{"event": events.NEW_NOTIFICATION, "data": {"id": 1}}]


@pytest.mark.anyio
async def test_detach_removes_connection_from_every_group() -> None:
    broadcaster = RoomBroadcaster(AllowList((1, 10), (1, 11)))
    connection = _connection(1)
    await broadcaster.attach(connection)
    await broadcaster.join(connection, 10)
    await broadcaster.join(connection, 11)

    await broadcaster.detach(connection)

    assert connection.rooms == set()
    for group in (
        events.personal_group(1),
        events.conversation_group(10),
        events.conversation_group(11),
    ):
        assert await broadcaster.members(group) == []


@pytest.mark.anyio
async def test_leave_stops_conversation_events() -> None:
    broadcaster = RoomBroadcaster(AllowList((1, 10)))
    connection = _connection(1)
    await broadcaster.join(connection, 10)
    await broadcaster.leave(connection, 10)

    delivered = await broadcaster.publish(events.conversation_group(10), events.NEW_MESSAGE, {})

    assert delivered == 0
    assert connection.transport.frames == []


@pytest.mark.anyio
async def test_broadcast_except_user_skips_every_connection_of_that_user() -> None:
    broadcaster = RoomBroadcaster(AllowList())
    mine = [_connection(1), _connection(1)]
    theirs = [_connection(2), _connection(3)]
    for connection in mine + theirs:
        await broadcaster.attach(connection)

    delivered = await broadcaster.broadcast_except_user(1, events.USER_ONLINE, {"user_id": 1})

    assert delivered == 2
    assert all(connection.transport.frames == [] for connection in mine)
    assert all(
        connection.transport.frames == [{"event": events.USER_ONLINE, "data": {"user_id": 1}}]
        for connection in theirs
    )
