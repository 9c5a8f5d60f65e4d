"""Persistence layer for user data."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import User
from app.infrastructure.models import UserModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone

from .errors import storage_errors


class UserRepository:
    """Provide CRUD operations for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = (
            self.session.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel(
            email=user.email.strip().lower(),
            password=user.password,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_picture_url=user.profile_picture_url,
            is_active=user.is_active,
            is_online=False,
        )
        if user.created_at is not None:
            model.created_at = ensure_app_naive_datetime(user.created_at)
        with storage_errors(self.session, "create the user"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def set_online_status(self, user_id: int, is_online: bool) -> None:
        with storage_errors(self.session, "update the online status"):
            self.session.query(UserModel).filter(UserModel.id == user_id).update(
                {UserModel.is_online: is_online}, synchronize_session=False
            )
            self.session.commit()

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            password=model.password,
            first_name=model.first_name,
            last_name=model.last_name or "",
            profile_picture_url=model.profile_picture_url,
            is_active=bool(model.is_active),
            is_online=bool(model.is_online),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["UserRepository"]
