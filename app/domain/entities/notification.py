"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Closed set of notification kinds produced by the platform."""

    NEW_MESSAGE = "NEW_MESSAGE"
    NEW_OFFER = "NEW_OFFER"
    LISTING_APPROVED = "LISTING_APPROVED"
    LISTING_REJECTED = "LISTING_REJECTED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_SENT = "PAYMENT_SENT"
    NEW_REVIEW = "NEW_REVIEW"
    LISTING_VIEWED = "LISTING_VIEWED"
    LISTING_EXPIRED = "LISTING_EXPIRED"
    KYC_APPROVED = "KYC_APPROVED"
    KYC_REJECTED = "KYC_REJECTED"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT"


@dataclass
class Notification:
    """Asynchronous event delivered to a specific user."""

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    content: str
    link: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    created_at: datetime | None = None


__all__ = ["Notification", "NotificationType"]
