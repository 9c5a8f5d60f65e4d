"""Online/offline transitions and ephemeral typing indicators."""

from __future__ import annotations

import logging
from typing import Callable

import anyio

from app.domain.exceptions import PersistenceError
from app.infrastructure import database
from app.infrastructure.repositories import UserRepository

from . import events
from .broadcaster import RoomBroadcaster
from .connection import Connection
from .locks import KeyedLocks
from .sessions import SessionRegistry

logger = logging.getLogger(__name__)

StatusStore = Callable[[int, bool], None]


def persist_online_status(user_id: int, is_online: bool) -> None:
    """Write the online flag of ``user_id`` to the user table."""

    with database.SessionLocal() as session:
        UserRepository(session).set_online_status(user_id, is_online)


class PresenceTracker:
    """Register connections and publish presence changes of their users.

    Connects and disconnects of one user are serialized by a per-user lock, so
    the first/last checks, the stored flag and the broadcast events always
    follow the order in which sessions opened and closed.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        broadcaster: RoomBroadcaster,
        status_store: StatusStore | None = None,
    ) -> None:
        self._registry = registry
        self._broadcaster = broadcaster
        self._status_store = status_store or persist_online_status
        self._user_locks = KeyedLocks()

    async def connect(self, connection: Connection) -> bool:
        """Register ``connection``; return ``True`` if its user just came online."""

        async with self._user_locks.hold(connection.user_id):
            await self._broadcaster.attach(connection)
            first = await self._registry.register(connection)
            if first:
                await self._transition(connection.user_id, online=True)
        return first

    async def disconnect(self, connection: Connection) -> bool:
        """Drop ``connection``; return ``True`` if its user just went offline."""

        connection.close()
        async with self._user_locks.hold(connection.user_id):
            await self._broadcaster.detach(connection)
            last = await self._registry.unregister(connection)
            if last:
                await self._transition(connection.user_id, online=False)
        return last

    async def typing(self, connection: Connection, conversation_id: int, *, started: bool) -> int:
        """Relay a typing indicator to the other members of a joined conversation."""

        if conversation_id not in connection.rooms:
            return 0
        if started:
            event = events.USER_TYPING
            payload = {
                "user_id": connection.user_id,
                "first_name": connection.first_name,
                "conversation_id": conversation_id,
            }
        else:
            event = events.USER_STOPPED_TYPING
            payload = {"user_id": connection.user_id, "conversation_id": conversation_id}
        return await self._broadcaster.publish(
            events.conversation_group(conversation_id), event, payload, exclude=connection
        )

    async def _transition(self, user_id: int, *, online: bool) -> None:
        try:
            await anyio.to_thread.run_sync(self._status_store, user_id, online)
        except PersistenceError:
            logger.warning("Could not store online=%s for user %s", online, user_id)
        event = events.USER_ONLINE if online else events.USER_OFFLINE
        await self._broadcaster.broadcast_except_user(user_id, event, {"user_id": user_id})
        logger.info("User %s is now %s", user_id, "online" if online else "offline")


__all__ = ["PresenceTracker", "StatusStore", "persist_online_status"]
