"""Websocket endpoint carrying chat, presence and notification events."""

from __future__ import annotations

import logging
from typing import Any

import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.application.use_cases.conversations import MessagePipeline
from app.domain.exceptions import AuthenticationError, DeliveryBestEffort, RealtimeError
from app.infrastructure.realtime import Connection, RealtimeHub, events, get_realtime_hub
from app.utils import parse_identifier

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def realtime_websocket(websocket: WebSocket) -> None:
    """Authenticate the client, register its session and serve its events."""

    hub = get_realtime_hub()
    if hub is None:
        await websocket.close(code=1011)
        return

    try:
        user = await hub.registry.authenticate(websocket.query_params.get("token"))
    except AuthenticationError as exc:
        logger.info("Rejected websocket handshake: %s", exc.message)
        await websocket.close(code=1008)
        return

    await websocket.accept()
    connection = Connection(websocket, user)
    pipeline = MessagePipeline(hub)
    await hub.presence.connect(connection)
    try:
        await connection.send(
            events.CONNECTED,
            {"user_id": connection.user_id, "online_user_ids": hub.registry.online_user_ids()},
        )
        while True:
            try:
                frame = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except (ValueError, KeyError):
                await _send_error(connection, "Malformed event")
                continue
            await _handle_frame(hub, pipeline, connection, frame)
    except (WebSocketDisconnect, DeliveryBestEffort):
        logger.debug("Connection %s of user %s closed", connection.id, connection.user_id)
    finally:
        with anyio.CancelScope(shield=True):
            await hub.presence.disconnect(connection)


async def _handle_frame(
    hub: RealtimeHub, pipeline: MessagePipeline, connection: Connection, frame: Any
) -> None:
    if not isinstance(frame, dict):
        await _send_error(connection, "Malformed event")
        return

    event = frame.get("event")
    data = frame.get("data") or {}
    if event == events.PING:
        await connection.send(events.PONG, {})
        return
    if not isinstance(data, dict):
        await _send_error(connection, "Malformed event")
        return

    if event == events.SEND_MESSAGE:
        try:
            await pipeline.send(
                sender_id=connection.user_id,
                conversation_id=data.get("conversation_id"),
                content=data.get("content"),
                attachment_url=data.get("attachment_url"),
                origin=connection,
            )
        except RealtimeError as exc:
            await _send_error(connection, exc.message)
        return

    conversation_id = parse_identifier(data.get("conversation_id"))
    if conversation_id is None:
        await _send_error(connection, "Invalid conversation id")
        return

    if event == events.JOIN_CONVERSATION:
        await hub.broadcaster.join(connection, conversation_id)
    elif event == events.LEAVE_CONVERSATION:
        await hub.broadcaster.leave(connection, conversation_id)
    elif event in (events.TYPING_START, events.TYPING_STOP):
        await hub.presence.typing(
            connection, conversation_id, started=event == events.TYPING_START
        )
    else:
        await _send_error(connection, f"Unknown event '{event}'")


async def _send_error(connection: Connection, message: str) -> None:
    try:
        await connection.send(events.ERROR, {"message": message})
    except DeliveryBestEffort as exc:
        logger.debug("Error event not delivered: %s", exc.message)


__all__ = ["router"]
