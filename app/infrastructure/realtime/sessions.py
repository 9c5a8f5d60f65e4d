"""Registry of the live connections of every authenticated user."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import anyio
from sqlalchemy.exc import SQLAlchemyError

from app.domain.entities import User
from app.domain.exceptions import AuthenticationError
from app.infrastructure import database
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import user_id_from_token

from .connection import Connection

logger = logging.getLogger(__name__)

Authenticator = Callable[[str], User]


def resolve_user_from_token(token: str) -> User:
    """Verify ``token`` and load the user it names from the user table."""

    try:
        user_id = user_id_from_token(token)
    except ValueError as exc:
        raise AuthenticationError("Invalid or expired credentials") from exc

    try:
        with database.SessionLocal() as session:
            user = UserRepository(session).get(user_id)
    except SQLAlchemyError as exc:
        logger.exception("Could not load user %s during the handshake", user_id)
        raise AuthenticationError("Could not verify credentials") from exc

    if user is None or not user.is_active:
        raise AuthenticationError("User not found")
    return user


class SessionRegistry:
    """Map user identifiers to their currently open connections.

    ``register`` and ``unregister`` report whether the call flipped the user
    between offline and online; both the mutation and that check run under the
    same lock.
    """

    def __init__(self, authenticator: Authenticator | None = None) -> None:
        self._authenticator = authenticator or resolve_user_from_token
        self._sessions: dict[int, dict[str, Connection]] = {}
        self._lock = asyncio.Lock()

    async def authenticate(self, token: str | None) -> User:
        """Return the user behind ``token`` or raise ``AuthenticationError``."""

        if not token:
            raise AuthenticationError("Missing credentials")
        return await anyio.to_thread.run_sync(self._authenticator, token)

    async def register(self, connection: Connection) -> bool:
        """Add ``connection``; return ``True`` if it is the user's first one."""

        async with self._lock:
            connections = self._sessions.setdefault(connection.user_id, {})
            first = not connections
            connections[connection.id] = connection
            open_count = len(connections)
        logger.info(
            "Registered connection %s for user %s (%d open)",
            connection.id,
            connection.user_id,
            open_count,
        )
        return first

    async def unregister(self, connection: Connection) -> bool:
        """Remove ``connection``; return ``True`` if it was the user's last one."""

        async with self._lock:
            connections = self._sessions.get(connection.user_id)
            if connections is None or connections.pop(connection.id, None) is None:
                return False
            last = not connections
            if last:
                del self._sessions[connection.user_id]
        logger.info("Unregistered connection %s for user %s", connection.id, connection.user_id)
        return last

    def sessions_for(self, user_id: int) -> frozenset[Connection]:
        return frozenset(self._sessions.get(user_id, {}).values())

    def is_online(self, user_id: int) -> bool:
        return bool(self._sessions.get(user_id))

    def online_user_ids(self) -> list[int]:
        return sorted(self._sessions)

    def all_connections(self) -> list[Connection]:
        return [
            connection
            for connections in self._sessions.values()
            for connection in connections.values()
        ]

    def connection_count(self) -> int:
        return sum(len(connections) for connections in self._sessions.values())


__all__ = ["Authenticator", "SessionRegistry", "resolve_user_from_token"]
