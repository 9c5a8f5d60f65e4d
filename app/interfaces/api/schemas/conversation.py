"""Pydantic models for conversations and chat messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.utils import MAX_IDENTIFIER


class MessageCreate(BaseModel):
    """Body of a message sent through the REST API."""

    content: str = Field(..., description="Message text")
    attachment_url: str | None = Field(
        default=None, max_length=500, description="Reference to an uploaded attachment"
    )


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_id: int
    content: str
    attachment_url: str | None = None
    is_read: bool
    created_at: datetime
    first_name: str | None = None
    last_name: str | None = None
    profile_picture_url: str | None = None


class MessageListRead(BaseModel):
    messages: list[MessageRead]


class ConversationCreate(BaseModel):
    """Request to start (or resume) a conversation with another user."""

    participant_id: int = Field(..., ge=1, le=MAX_IDENTIFIER)
    listing_id: int | None = Field(default=None, ge=1, le=MAX_IDENTIFIER)
    initial_message: str = Field(..., min_length=1)


class ConversationStartedRead(BaseModel):
    conversation_id: int
    created: bool
    message: MessageRead


class ConversationSummaryRead(BaseModel):
    id: int
    listing_id: int | None = None
    participant1_id: int
    participant2_id: int
    counterpart_id: int
    counterpart_first_name: str
    counterpart_last_name: str
    counterpart_is_online: bool
    last_message_id: int | None = None
    last_message_content: str | None = None
    last_message_at: datetime | None = None
    unread_count: int
    created_at: datetime
    updated_at: datetime


class ConversationListRead(BaseModel):
    conversations: list[ConversationSummaryRead]


__all__ = [
    "ConversationCreate",
    "ConversationListRead",
    "ConversationStartedRead",
    "ConversationSummaryRead",
    "MessageCreate",
    "MessageListRead",
    "MessageRead",
]
