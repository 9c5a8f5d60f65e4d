"""Tests for notification storage."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.domain.entities import Notification, NotificationType
from app.domain.exceptions import PersistenceError
from app.infrastructure.models import NotificationModel
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone


def _notification(user_id: int, title: str | None = "Hello", *, age_days: int = 0) -> Notification:
    return Notification(
        id=None,
        user_id=user_id,
        type=NotificationType.SYSTEM_ANNOUNCEMENT,
        title=title,
        content="Body",
        created_at=now_in_app_timezone() - timedelta(days=age_days),
    )


def test_create_many_is_all_or_nothing(db_session, alice, bob) -> None:
    repository = NotificationRepository(db_session)
    batch = [_notification(alice.id), _notification(bob.id, title=None), _notification(bob.id)]

    with pytest.raises(PersistenceError):
        repository.create_many(batch)

    assert db_session.query(NotificationModel).count() == 0


def test_create_many_returns_persisted_entities(db_session, alice, bob) -> None:
    saved = NotificationRepository(db_session).create_many(
        [_notification(alice.id), _notification(bob.id)]
    )

    assert [n.user_id for n in saved] == [alice.id, bob.id]
    assert all(n.id is not None for n in saved)
    assert all(n.type is NotificationType.SYSTEM_ANNOUNCEMENT for n in saved)


def test_list_for_user_is_newest_first_with_total(db_session, alice, bob) -> None:
    repository = NotificationRepository(db_session)
    repository.create(_notification(alice.id, "old", age_days=2))
    repository.create(_notification(alice.id, "new"))
    repository.create(_notification(bob.id, "other"))

    items, total = repository.list_for_user(alice.id, limit=1)

    assert total == 2
    assert [n.title for n in items] == ["new"]


def test_mark_as_read_is_scoped_to_the_owner(db_session, alice, bob) -> None:
    repository = NotificationRepository(db_session)
    notification = repository.create(_notification(alice.id))

    assert repository.mark_as_read(notification.id, user_id=bob.id) is False
    assert repository.count_unread(alice.id) == 1
    assert repository.mark_as_read(notification.id, user_id=alice.id) is True
    assert repository.count_unread(alice.id) == 0


def test_delete_older_than_keeps_recent_rows(db_session, alice) -> None:
    repository = NotificationRepository(db_session)
    repository.create(_notification(alice.id, "ancient", age_days=40))
    repository.create(_notification(alice.id, "fresh", age_days=1))

    deleted = repository.delete_older_than(now_in_app_timezone() - timedelta(days=30))

    items, total = repository.list_for_user(alice.id)
    assert deleted == 1
    assert total == 1
    assert items[0].title == "fresh"


def test_reads_report_storage_outages(db_session, alice) -> None:
    NotificationModel.__table__.drop(bind=db_session.get_bind())
    repository = NotificationRepository(db_session)

    with pytest.raises(PersistenceError):
        repository.list_for_user(alice.id)
    with pytest.raises(PersistenceError):
        repository.count_unread(alice.id)
