"""Participant checks guarding room joins, sends and history reads."""

from __future__ import annotations

import logging
from typing import Callable

import anyio
from sqlalchemy.orm import Session

from app.domain.entities import Conversation
from app.infrastructure import database
from app.infrastructure.repositories import ConversationRepository
from app.utils import parse_identifier

logger = logging.getLogger(__name__)


def participant_conversation(
    session: Session, user_id: int, conversation_id: int
) -> Conversation | None:
    """Return the conversation if ``user_id`` takes part in it, else ``None``.

    A failed or malformed lookup counts as "not a participant".
    """

    parsed_conversation_id = parse_identifier(conversation_id)
    parsed_user_id = parse_identifier(user_id)
    if parsed_conversation_id is None or parsed_user_id is None:
        return None
    try:
        return ConversationRepository(session).get_for_participant(
            parsed_conversation_id, parsed_user_id
        )
    except Exception:
        logger.warning(
            "Membership lookup failed for user %s in conversation %s",
            user_id,
            conversation_id,
            exc_info=True,
        )
        return None


def is_participant(session: Session, user_id: int, conversation_id: int) -> bool:
    return participant_conversation(session, user_id, conversation_id) is not None


class MembershipAuthority:
    """Async front for :func:`is_participant` running on a worker thread."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory or (lambda: database.SessionLocal())

    async def is_participant(self, user_id: int, conversation_id: int) -> bool:
        return await anyio.to_thread.run_sync(self._lookup, user_id, conversation_id)

    def _lookup(self, user_id: int, conversation_id: int) -> bool:
        try:
            with self._session_factory() as session:
                return is_participant(session, user_id, conversation_id)
        except Exception:
            logger.warning("Could not open a session for the membership lookup", exc_info=True)
            return False


__all__ = ["MembershipAuthority", "is_participant", "participant_conversation"]
