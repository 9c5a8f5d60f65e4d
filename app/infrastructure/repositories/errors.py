"""Translate SQLAlchemy failures into :class:`PersistenceError`."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(session: Session, action: str) -> Iterator[None]:
    """Roll back ``session`` and raise ``PersistenceError`` if ``action`` fails."""

    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Storage failure while trying to %s", action)
        raise PersistenceError(f"Could not {action}") from exc


__all__ = ["storage_errors"]
