"""A single authenticated realtime connection."""

from __future__ import annotations

import logging
from typing import Any, Protocol
from uuid import uuid4

from app.domain.entities import User
from app.domain.exceptions import DeliveryBestEffort

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything able to push a JSON document to the client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None:  # pragma: no cover - protocol
        ...


class Connection:
    """One live channel owned by exactly one user.

    Conversation membership (``rooms``) is session-local and dies with the
    connection.
    """

    def __init__(
        self, transport: Transport, user: User, *, connection_id: str | None = None
    ) -> None:
        if user.id is None:
            raise ValueError("Connections require a persisted user")
        self.id = connection_id or uuid4().hex
        self.transport = transport
        self.user_id: int = user.id
        self.first_name = user.first_name
        self.last_name = user.last_name
        self.rooms: set[int] = set()
        self.closed = False

    async def send(self, event: str, data: Any) -> None:
        """Push ``event`` to the client; raise ``DeliveryBestEffort`` on failure."""

        if self.closed:
            raise DeliveryBestEffort(
                f"Connection {self.id} is closed", connection_id=self.id
            )
        try:
            await self.transport.send_json({"event": event, "data": data})
        except Exception as exc:
            raise DeliveryBestEffort(
                f"Could not deliver '{event}' to connection {self.id}: {exc}",
                connection_id=self.id,
            ) from exc

    def close(self) -> None:
        """Stop accepting deliveries; pending sends become no-ops."""

        self.closed = True

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id})"


__all__ = ["Connection", "Transport"]
