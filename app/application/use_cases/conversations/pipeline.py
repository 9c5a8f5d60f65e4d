"""Persist-then-broadcast pipeline for chat messages.

A send moves through ``Received -> Authorized -> Persisted -> Broadcast ->
Acknowledged`` and stops at ``Rejected`` on the first failure. The message is
written before any live event is emitted, and sends within one conversation
hold a per-conversation lock across persistence and broadcast so that live
events follow the order in which the rows were committed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import anyio
from sqlalchemy.orm import Session

from app.domain.entities import Message
from app.domain.exceptions import DeliveryBestEffort, RealtimeError, ValidationError
from app.infrastructure import database
from app.infrastructure.realtime import Connection, RealtimeHub, events, serialize_message
from app.utils import parse_identifier

from ..notifications import notify_new_message
from .messages import send_message, validate_message_content

logger = logging.getLogger(__name__)


class SendState(str, Enum):
    RECEIVED = "received"
    AUTHORIZED = "authorized"
    PERSISTED = "persisted"
    BROADCAST = "broadcast"
    ACKNOWLEDGED = "acknowledged"
    REJECTED = "rejected"


class MessagePipeline:
    """Run chat sends coming from websockets and REST calls alike."""

    def __init__(
        self,
        hub: RealtimeHub,
        *,
        session_factory: Callable[[], Session] | None = None,
        notify_receiver: bool = True,
    ) -> None:
        self._hub = hub
        self._session_factory = session_factory or (lambda: database.SessionLocal())
        self._notify_receiver = notify_receiver
        self.state = SendState.RECEIVED

    async def send(
        self,
        *,
        sender_id: int,
        conversation_id: int,
        content: object,
        attachment_url: object = None,
        origin: Connection | None = None,
    ) -> Message:
        """Store and fan out one message; return the persisted record.

        Raises ``ValidationError``, ``NotAuthorized`` or ``PersistenceError``
        when the send is rejected. Delivery problems are never raised.
        """

        self.state = SendState.RECEIVED
        try:
            conversation_id = _as_conversation_id(conversation_id)
            text, attachment = validate_message_content(content, attachment_url)
            # Shielded: a disconnecting sender must not cut persistence or the
            # fan-out to the other participants short.
            with anyio.CancelScope(shield=True):
                async with self._hub.conversation_locks.hold(conversation_id):
                    message, receiver_id = await anyio.to_thread.run_sync(
                        self._persist, sender_id, conversation_id, text, attachment
                    )
                    self.state = SendState.PERSISTED
                    payload = serialize_message(message)
                    await self._broadcast(message, receiver_id, payload)
                    self.state = SendState.BROADCAST
        except Exception:
            self.state = SendState.REJECTED
            raise

        if origin is not None:
            try:
                await origin.send(events.MESSAGE_SENT, payload)
            except DeliveryBestEffort as exc:
                logger.info("Acknowledgement not delivered: %s", exc.message)
        self.state = SendState.ACKNOWLEDGED

        if self._notify_receiver:
            await anyio.to_thread.run_sync(self._notify, message, receiver_id)
        return message

    def _persist(
        self, sender_id: int, conversation_id: int, content: str, attachment_url: str | None
    ) -> tuple[Message, int]:
        with self._session_factory() as session:
            message, receiver_id = send_message(
                session,
                sender_id=sender_id,
                conversation_id=conversation_id,
                content=content,
                attachment_url=attachment_url,
                on_authorized=self._mark_authorized,
            )
        return message, receiver_id

    def _mark_authorized(self) -> None:
        self.state = SendState.AUTHORIZED

    async def _broadcast(self, message: Message, receiver_id: int, payload: dict) -> None:
        broadcaster = self._hub.broadcaster
        await broadcaster.publish(
            events.conversation_group(message.conversation_id), events.NEW_MESSAGE, payload
        )
        await broadcaster.publish(
            events.personal_group(receiver_id),
            events.NEW_CONVERSATION_MESSAGE,
            {"conversation_id": message.conversation_id, "message": payload},
        )

    def _notify(self, message: Message, receiver_id: int) -> None:
        try:
            with self._session_factory() as session:
                notify_new_message(session, message=message, receiver_id=receiver_id)
        except RealtimeError:
            logger.warning(
                "Message %s stored but the notification for user %s failed",
                message.id,
                receiver_id,
            )


def _as_conversation_id(value: object) -> int:
    conversation_id = parse_identifier(value)
    if conversation_id is None:
        raise ValidationError("Invalid conversation id")
    return conversation_id


__all__ = ["MessagePipeline", "SendState"]
