"""Realtime fan-out helpers for the infrastructure layer."""

from . import events
from .broadcaster import RoomBroadcaster
from .connection import Connection
from .hub import RealtimeHub, get_realtime_hub, install_realtime_hub, uninstall_realtime_hub
from .locks import KeyedLocks
from .membership import MembershipAuthority, is_participant, participant_conversation
from .presence import PresenceTracker, persist_online_status
from .publisher import NotificationPublisher
from .serializers import serialize_message, serialize_notification
from .sessions import SessionRegistry, resolve_user_from_token

notification_publisher = NotificationPublisher(get_realtime_hub)


def dispatch_notification(notification) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(notification)


__all__ = [
    "events",
    "Connection",
    "KeyedLocks",
    "MembershipAuthority",
    "NotificationPublisher",
    "PresenceTracker",
    "RealtimeHub",
    "RoomBroadcaster",
    "SessionRegistry",
    "dispatch_notification",
    "get_realtime_hub",
    "install_realtime_hub",
    "is_participant",
    "notification_publisher",
    "participant_conversation",
    "persist_online_status",
    "resolve_user_from_token",
    "serialize_message",
    "serialize_notification",
    "uninstall_realtime_hub",
]
