"""Create, list and acknowledge notifications, pushing new ones live."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.entities import Notification, NotificationType
from app.domain.exceptions import ValidationError
from app.infrastructure.realtime import dispatch_notification
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Notification], None]
MAX_PAGE_SIZE = 100


@dataclass
class NotificationPage:
    """One page of a user's notifications."""

    notifications: Sequence[Notification]
    total_count: int
    current_page: int
    total_pages: int


def _coerce_type(value: Any) -> NotificationType:
    try:
        return NotificationType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown notification type '{value}'") from exc


def _build_notification(
    *,
    user_id: Any,
    type: Any,
    title: Any,
    content: Any,
    link: Any = None,
    metadata: Mapping[str, Any] | None = None,
) -> Notification:
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise ValidationError("Notification recipient must be a user id")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Notification title is required")
    if not isinstance(content, str):
        raise ValidationError("Notification content must be text")
    return Notification(
        id=None,
        user_id=user_id,
        type=_coerce_type(type),
        title=title.strip(),
        content=content,
        link=link,
        metadata=dict(metadata or {}),
        is_read=False,
        created_at=now_in_app_timezone(),
    )


def create_notification(
    session: Session,
    *,
    user_id: int,
    type: NotificationType | str,
    title: str,
    content: str,
    link: str | None = None,
    metadata: Mapping[str, Any] | None = None,
    dispatcher: Dispatcher = dispatch_notification,
) -> Notification:
    """Persist one notification, then push it to the user's live sessions."""

    notification = _build_notification(
        user_id=user_id, type=type, title=title, content=content, link=link, metadata=metadata
    )
    saved = NotificationRepository(session).create(notification)
    dispatcher(saved)
    return saved


def create_bulk_notifications(
    session: Session,
    notifications: Iterable[Mapping[str, Any]],
    *,
    dispatcher: Dispatcher = dispatch_notification,
) -> list[Notification]:
    """Persist many notifications atomically, then push each one live.

    Every entry is validated before anything is written, and the rows are
    stored in one transaction.
    """

    drafts = [
        _build_notification(
            user_id=entry.get("user_id"),
            type=entry.get("type"),
            title=entry.get("title"),
            content=entry.get("content"),
            link=entry.get("link"),
            metadata=entry.get("metadata"),
        )
        for entry in notifications
    ]
    saved = NotificationRepository(session).create_many(drafts)
    for notification in saved:
        dispatcher(notification)
    logger.info("Created %d notifications in bulk", len(saved))
    return saved


def list_notifications(
    session: Session,
    *,
    user_id: int,
    page: int = 1,
    limit: int | None = None,
    unread_only: bool = False,
) -> NotificationPage:
    limit = min(max(limit or get_settings().notification_page_size, 1), MAX_PAGE_SIZE)
    page = max(page, 1)
    notifications, total = NotificationRepository(session).list_for_user(
        user_id, limit=limit, offset=(page - 1) * limit, unread_only=unread_only
    )
    return NotificationPage(
        notifications=notifications,
        total_count=total,
        current_page=page,
        total_pages=math.ceil(total / limit),
    )


def unread_count(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).count_unread(user_id)


def mark_as_read(session: Session, *, notification_id: int, user_id: int) -> bool:
    """Flag one notification of ``user_id`` as read; ``False`` if it is not theirs."""

    return NotificationRepository(session).mark_as_read(notification_id, user_id=user_id)


def mark_all_as_read(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).mark_all_as_read(user_id)


def delete_old_notifications(session: Session, *, days_old: int | None = None) -> int:
    """Purge notifications older than ``days_old`` (the configured retention by default)."""

    days = days_old if days_old is not None else get_settings().notification_retention_days
    deleted = NotificationRepository(session).delete_older_than(
        now_in_app_timezone() - timedelta(days=days)
    )
    logger.info("Deleted %d notifications older than %d days", deleted, days)
    return deleted


__all__ = [
    "NotificationPage",
    "create_bulk_notifications",
    "create_notification",
    "delete_old_notifications",
    "list_notifications",
    "mark_all_as_read",
    "mark_as_read",
    "unread_count",
]
