"""Use case for creating users."""

from sqlalchemy.orm import Session

from app.domain.entities import User
from app.domain.exceptions import ValidationError
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import get_password_hash
from app.utils import now_in_app_timezone


def create_user(
    session: Session,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str = "",
    profile_picture_url: str | None = None,
) -> User:
    """Create a new user ensuring unique email addresses."""

    normalized_email = email.strip().lower()
    if "@" not in normalized_email:
        raise ValidationError("A valid email address is required")
    if not first_name.strip():
        raise ValidationError("First name is required")
    if not password:
        raise ValidationError("Password is required")

    repository = UserRepository(session)
    if repository.get_by_email(normalized_email):
        raise ValidationError("Email is already registered")

    user = User(
        id=None,
        email=normalized_email,
        password=get_password_hash(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        profile_picture_url=profile_picture_url,
        is_active=True,
        is_online=False,
        created_at=now_in_app_timezone(),
    )
    return repository.create(user)
