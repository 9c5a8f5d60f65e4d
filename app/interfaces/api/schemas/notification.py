"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: NotificationType
    title: str
    content: str
    link: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime


class PaginationRead(BaseModel):
    current_page: int
    total_pages: int
    total_count: int


class NotificationPageRead(BaseModel):
    notifications: list[NotificationRead]
    pagination: PaginationRead


class UnreadCountRead(BaseModel):
    count: int


class StatusMessage(BaseModel):
    message: str


__all__ = [
    "NotificationPageRead",
    "NotificationRead",
    "PaginationRead",
    "StatusMessage",
    "UnreadCountRead",
]
