"""REST endpoints for conversations and their message history."""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.application.use_cases.conversations import (
    MAX_HISTORY_LIMIT,
    MessagePipeline,
    get_or_create_conversation,
    list_conversations,
    open_conversation,
)
from app.domain.entities import Conversation, ConversationSummary, Message, User
from app.domain.exceptions import RealtimeError
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.realtime import RealtimeHub, serialize_message
from app.interfaces.api.dependencies import get_current_active_user, get_hub
from app.interfaces.api.routes_helpers import MAX_PAGE, to_http_exception
from app.interfaces.api.schemas import (
    ConversationCreate,
    ConversationListRead,
    ConversationStartedRead,
    ConversationSummaryRead,
    MessageCreate,
    MessageListRead,
    MessageRead,
)

router = APIRouter(prefix="/messages", tags=["messages"])
logger = logging.getLogger(__name__)


def _message_to_schema(message: Message) -> MessageRead:
    return MessageRead(**serialize_message(message))


def _summary_to_schema(summary: ConversationSummary) -> ConversationSummaryRead:
    conversation = summary.conversation
    return ConversationSummaryRead(
        id=conversation.id,
        listing_id=conversation.listing_id,
        participant1_id=conversation.participant1_id,
        participant2_id=conversation.participant2_id,
        counterpart_id=summary.counterpart_id,
        counterpart_first_name=summary.counterpart_first_name,
        counterpart_last_name=summary.counterpart_last_name,
        counterpart_is_online=summary.counterpart_is_online,
        last_message_id=conversation.last_message_id,
        last_message_content=summary.last_message_content,
        last_message_at=summary.last_message_at,
        unread_count=summary.unread_count,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


@router.get("/conversations", response_model=ConversationListRead)
def read_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ConversationListRead:
    """Return the conversations of the authenticated user, latest activity first."""

    try:
        summaries = list_conversations(db, user_id=current_user.id)
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    return ConversationListRead(conversations=[_summary_to_schema(s) for s in summaries])


@router.post(
    "/conversations",
    response_model=ConversationStartedRead,
    status_code=status.HTTP_201_CREATED,
)
async def start_conversation(
    payload: ConversationCreate,
    current_user: User = Depends(get_current_active_user),
    hub: RealtimeHub = Depends(get_hub),
) -> ConversationStartedRead:
    """Open (or resume) a conversation and send its first message."""

    def _get_or_create() -> tuple[Conversation, bool]:
        with SessionLocal() as session:
            return get_or_create_conversation(
                session,
                user_id=current_user.id,
                participant_id=payload.participant_id,
                listing_id=payload.listing_id,
            )

    try:
        conversation, created = await anyio.to_thread.run_sync(_get_or_create)
        message = await MessagePipeline(hub).send(
            sender_id=current_user.id,
            conversation_id=conversation.id,
            content=payload.initial_message,
        )
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc

    if created:
        logger.info(
            "User %s started conversation %s with user %s",
            current_user.id,
            conversation.id,
            payload.participant_id,
        )
    return ConversationStartedRead(
        conversation_id=conversation.id,
        created=created,
        message=_message_to_schema(message),
    )


@router.get("/conversations/{conversation_id}/messages", response_model=MessageListRead)
def read_messages(
    conversation_id: int,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int | None = Query(None, ge=1, le=MAX_HISTORY_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageListRead:
    """Return one page of history and mark the counterpart's messages in it as read."""

    try:
        messages = open_conversation(
            db,
            user_id=current_user.id,
            conversation_id=conversation_id,
            page=page,
            limit=limit,
        )
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    return MessageListRead(messages=[_message_to_schema(m) for m in messages])


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    conversation_id: int,
    payload: MessageCreate,
    current_user: User = Depends(get_current_active_user),
    hub: RealtimeHub = Depends(get_hub),
) -> MessageRead:
    """Send a message through the same pipeline used by websocket clients."""

    try:
        message = await MessagePipeline(hub).send(
            sender_id=current_user.id,
            conversation_id=conversation_id,
            content=payload.content,
            attachment_url=payload.attachment_url,
        )
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    return _message_to_schema(message)


__all__ = ["router"]
