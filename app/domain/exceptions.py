"""Error kinds raised by the conversation and notification subsystem."""

from __future__ import annotations


class RealtimeError(Exception):
    """Base class for errors reported to a connection or an API caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(RealtimeError):
    """Bearer credential is missing, malformed, expired or names no user."""


class NotAuthorized(RealtimeError):
    """User is not a participant of the conversation it tried to reach."""


class ValidationError(RealtimeError):
    """Payload was rejected before anything was persisted."""


class PersistenceError(RealtimeError):
    """Storage was unavailable or rejected a write; nothing was kept."""


class DeliveryBestEffort(RealtimeError):
    """A live event could not reach a connection. Logged, never retried."""

    def __init__(self, message: str, *, connection_id: str | None = None) -> None:
        super().__init__(message)
        self.connection_id = connection_id


__all__ = [
    "RealtimeError",
    "AuthenticationError",
    "NotAuthorized",
    "ValidationError",
    "PersistenceError",
    "DeliveryBestEffort",
]
