"""Fan-out of realtime events to personal and conversation groups."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from app.domain.exceptions import DeliveryBestEffort

from .connection import Connection
from .events import PERSONAL_GROUP_PREFIX, conversation_group, personal_group

logger = logging.getLogger(__name__)


class Membership(Protocol):
    async def is_participant(self, user_id: int, conversation_id: int) -> bool:  # pragma: no cover
        ...


class RoomBroadcaster:
    """Maintain group memberships and deliver events to every current member.

    Groups map to insertion-ordered member dicts guarded by one lock. Publishing
    copies the member list under the lock and sends outside of it, one member
    after the other, so events from one producer keep their order per group.
    """

    def __init__(self, membership: Membership) -> None:
        self._membership = membership
        self._groups: dict[str, dict[str, Connection]] = {}
        self._lock = asyncio.Lock()

    async def attach(self, connection: Connection) -> None:
        """Add ``connection`` to the personal group of its user."""

        async with self._lock:
            self._add(personal_group(connection.user_id), connection)

    async def detach(self, connection: Connection) -> None:
        """Remove ``connection`` from its personal group and every joined room."""

        async with self._lock:
            self._discard(personal_group(connection.user_id), connection)
            for conversation_id in connection.rooms:
                self._discard(conversation_group(conversation_id), connection)
            connection.rooms.clear()

    async def join(self, connection: Connection, conversation_id: int) -> bool:
        """Join the conversation group if the user is a participant.

        A denied join is dropped without telling the client anything.
        """

        allowed = await self._membership.is_participant(connection.user_id, conversation_id)
        if not allowed:
            logger.debug(
                "Ignoring join of user %s to conversation %s", connection.user_id, conversation_id
            )
            return False
        async with self._lock:
            if connection.closed:
                return False
            self._add(conversation_group(conversation_id), connection)
            connection.rooms.add(conversation_id)
        logger.debug("User %s joined conversation %s", connection.user_id, conversation_id)
        return True

    async def leave(self, connection: Connection, conversation_id: int) -> None:
        async with self._lock:
            self._discard(conversation_group(conversation_id), connection)
            connection.rooms.discard(conversation_id)

    async def members(self, group_id: str) -> list[Connection]:
        async with self._lock:
            return list(self._groups.get(group_id, {}).values())

    async def publish(
        self,
        group_id: str,
        event: str,
        data: Any,
        *,
        exclude: Connection | None = None,
    ) -> int:
        """Send ``event`` to every member of ``group_id``; return deliveries made."""

        targets = [
            connection
            for connection in await self.members(group_id)
            if connection is not exclude
        ]
        return await self._deliver(targets, event, data)

    async def broadcast_except_user(self, user_id: int, event: str, data: Any) -> int:
        """Send ``event`` to every connection not owned by ``user_id``."""

        own_group = personal_group(user_id)
        async with self._lock:
            targets = [
                connection
                for group_id, members in self._groups.items()
                if group_id.startswith(PERSONAL_GROUP_PREFIX) and group_id != own_group
                for connection in members.values()
            ]
        return await self._deliver(targets, event, data)

    async def _deliver(self, targets: list[Connection], event: str, data: Any) -> int:
        delivered = 0
        for connection in targets:
            try:
                await connection.send(event, data)
            except DeliveryBestEffort as exc:
                logger.warning("%s", exc.message)
                continue
            delivered += 1
        return delivered

    def _add(self, group_id: str, connection: Connection) -> None:
        self._groups.setdefault(group_id, {})[connection.id] = connection

    def _discard(self, group_id: str, connection: Connection) -> None:
        members = self._groups.get(group_id)
        if members is None:
            return
        members.pop(connection.id, None)
        if not members:
            del self._groups[group_id]


__all__ = ["Membership", "RoomBroadcaster"]
