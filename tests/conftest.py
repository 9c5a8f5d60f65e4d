"""Shared fixtures: an isolated SQLite database and helpers to seed it."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "marketplace_realtime_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"

from app.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.domain.entities import Conversation, User  # noqa: E402
from app.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from app.infrastructure.repositories import (  # noqa: E402
    ConversationRepository,
    UserRepository,
)
from app.infrastructure.security import create_access_token, get_password_hash  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_database() -> None:
    """Ensure the test database starts from a clean state for each test."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def make_user() -> Callable[..., User]:
    """Return a factory inserting users with a known password."""

    def _make_user(
        *,
        email: str,
        first_name: str,
        last_name: str = "",
        password: str = "StrongPass123",
        is_active: bool = True,
    ) -> User:
        with SessionLocal() as session:
            return UserRepository(session).create(
                User(
                    id=None,
                    email=email,
                    password=get_password_hash(password),
                    first_name=first_name,
                    last_name=last_name,
                    is_active=is_active,
                )
            )

    return _make_user


@pytest.fixture
def make_conversation() -> Callable[..., Conversation]:
    def _make_conversation(
        first: User, second: User, *, listing_id: int | None = None
    ) -> Conversation:
        with SessionLocal() as session:
            return ConversationRepository(session).create(
                Conversation(
                    id=None,
                    participant1_id=first.id,
                    participant2_id=second.id,
                    listing_id=listing_id,
                )
            )

    return _make_conversation


@pytest.fixture
def alice(make_user) -> User:
    return make_user(email="alice@example.com", first_name="Alice", last_name="Buyer")


@pytest.fixture
def bob(make_user) -> User:
    return make_user(email="bob@example.com", first_name="Bob", last_name="Seller")


@pytest.fixture
def carol(make_user) -> User:
    return make_user(email="carol@example.com", first_name="Carol")


@pytest.fixture
def conversation(make_conversation, alice: User, bob: User) -> Conversation:
    return make_conversation(alice, bob, listing_id=7)


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
