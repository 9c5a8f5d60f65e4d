"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationType
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

from .errors import storage_errors


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_user(
        self,
        user_id: int,
        *,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False,
    ) -> tuple[Sequence[Notification], int]:
        """Return one page of notifications together with the total count."""

        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        with storage_errors(self.session, "load notifications"):
            total = query.count()
            models = (
                query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        return [self._to_entity(model) for model in models], total

    def count_unread(self, user_id: int) -> int:
        with storage_errors(self.session, "count unread notifications"):
            count = (
                self.session.query(func.count(NotificationModel.id))
                .filter(NotificationModel.user_id == user_id)
                .filter(NotificationModel.is_read.is_(False))
                .scalar()
            )
        return int(count or 0)

    def create(self, notification: Notification) -> Notification:
        model = self._to_model(notification)
        with storage_errors(self.session, "store the notification"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def create_many(self, notifications: Iterable[Notification]) -> list[Notification]:
        """Insert every notification in a single transaction, all or none."""

        models = [self._to_model(notification) for notification in notifications]
        if not models:
            return []
        with storage_errors(self.session, "store the notifications"):
            self.session.add_all(models)
            self.session.commit()
            for model in models:
                self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def mark_as_read(self, notification_id: int, *, user_id: int) -> bool:
        with storage_errors(self.session, "mark the notification as read"):
            updated = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.id == notification_id,
                    NotificationModel.user_id == user_id,
                )
                .update({NotificationModel.is_read: True}, synchronize_session=False)
            )
            self.session.commit()
        return bool(updated)

    def mark_all_as_read(self, user_id: int) -> int:
        with storage_errors(self.session, "mark notifications as read"):
            updated = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
                .update({NotificationModel.is_read: True}, synchronize_session=False)
            )
            self.session.commit()
        return int(updated or 0)

    def delete_older_than(self, cutoff: datetime) -> int:
        with storage_errors(self.session, "delete old notifications"):
            deleted = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.created_at < ensure_app_naive_datetime(cutoff))
                .delete(synchronize_session=False)
            )
            self.session.commit()
        return int(deleted or 0)

    @staticmethod
    def _to_model(notification: Notification) -> NotificationModel:
        notification_type = notification.type
        return NotificationModel(
            user_id=notification.user_id,
            type=notification_type.value
            if isinstance(notification_type, NotificationType)
            else notification_type,
            title=notification.title,
            content=notification.content,
            link=notification.link,
            payload=notification.metadata or {},
            is_read=notification.is_read,
            created_at=ensure_app_naive_datetime(
                notification.created_at or now_in_app_timezone()
            ),
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            content=model.content,
            link=model.link,
            metadata=model.payload or {},
            is_read=bool(model.is_read),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
