"""JSON payloads pushed to realtime clients."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any

from app.domain.entities import Message, Notification


def serialize_message(message: Message) -> dict[str, Any]:
    """Return the wire representation of ``message`` with sender display fields."""

    payload = asdict(message)
    payload["first_name"] = payload.pop("sender_first_name")
    payload["last_name"] = payload.pop("sender_last_name")
    payload["profile_picture_url"] = payload.pop("sender_profile_picture_url")
    _normalize_values(payload)
    return payload


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the wire representation of ``notification``."""

    payload = asdict(notification)
    _normalize_values(payload)
    return payload


def _normalize_values(data: dict[str, Any] | list[Any]) -> None:
    """Convert datetimes and enums nested inside ``data`` into JSON scalars."""

    items = data.items() if isinstance(data, dict) else enumerate(data)
    for key, value in list(items):
        if isinstance(value, datetime):
            data[key] = value.isoformat()
        elif isinstance(value, Enum):
            data[key] = value.value
        elif isinstance(value, (dict, list)):
            _normalize_values(value)


__all__ = ["serialize_message", "serialize_notification"]
