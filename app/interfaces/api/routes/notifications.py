"""Endpoints for reading and acknowledging notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    unread_count,
)
from app.domain.entities import Notification, User
from app.domain.exceptions import RealtimeError
from app.infrastructure.database import get_db
from app.interfaces.api.dependencies import get_current_active_user
from app.interfaces.api.routes_helpers import MAX_PAGE, to_http_exception
from app.utils import MAX_IDENTIFIER
from app.interfaces.api.schemas import (
    NotificationPageRead,
    NotificationRead,
    PaginationRead,
    StatusMessage,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification)


@router.get("/", response_model=NotificationPageRead)
def read_notifications(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int | None = Query(None, ge=1, le=100),
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPageRead:
    """Return the most recent notifications for the authenticated user."""

    try:
        result = list_notifications(
            db, user_id=current_user.id, page=page, limit=limit, unread_only=unread_only
        )
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    return NotificationPageRead(
        notifications=[_notification_to_schema(n) for n in result.notifications],
        pagination=PaginationRead(
            current_page=result.current_page,
            total_pages=result.total_pages,
            total_count=result.total_count,
        ),
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    try:
        count = unread_count(db, user_id=current_user.id)
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    return UnreadCountRead(count=count)


@router.put("/read-all", response_model=StatusMessage)
def acknowledge_all(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> StatusMessage:
    """Mark every unread notification of the user as read."""

    try:
        mark_all_as_read(db, user_id=current_user.id)
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    return StatusMessage(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=StatusMessage)
def acknowledge(
    notification_id: int = Path(..., ge=1, le=MAX_IDENTIFIER),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> StatusMessage:
    try:
        updated = mark_as_read(db, notification_id=notification_id, user_id=current_user.id)
    except RealtimeError as exc:
        raise to_http_exception(exc) from exc
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return StatusMessage(message="Notification marked as read")
