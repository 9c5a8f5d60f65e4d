"""Process-wide container wiring the realtime components together."""

from __future__ import annotations

import logging

from .broadcaster import Membership, RoomBroadcaster
from .locks import KeyedLocks
from .membership import MembershipAuthority
from .presence import PresenceTracker, StatusStore
from .sessions import Authenticator, SessionRegistry

logger = logging.getLogger(__name__)


class RealtimeHub:
    """Own the registry, broadcaster and presence tracker of one event loop."""

    def __init__(
        self,
        *,
        authenticator: Authenticator | None = None,
        membership: Membership | None = None,
        status_store: StatusStore | None = None,
    ) -> None:
        self.registry = SessionRegistry(authenticator)
        self.membership = membership or MembershipAuthority()
        self.broadcaster = RoomBroadcaster(self.membership)
        self.presence = PresenceTracker(self.registry, self.broadcaster, status_store)
        self.conversation_locks = KeyedLocks()


_hub: RealtimeHub | None = None


def get_realtime_hub() -> RealtimeHub | None:
    """Return the hub installed for the running application, if any."""

    return _hub


def install_realtime_hub(hub: RealtimeHub | None = None) -> RealtimeHub:
    """Install ``hub`` (or a fresh one) as the process-wide hub."""

    global _hub
    _hub = hub or RealtimeHub()
    logger.debug("Installed realtime hub %s", id(_hub))
    return _hub


def uninstall_realtime_hub() -> None:
    global _hub
    _hub = None


__all__ = [
    "RealtimeHub",
    "get_realtime_hub",
    "install_realtime_hub",
    "uninstall_realtime_hub",
]
