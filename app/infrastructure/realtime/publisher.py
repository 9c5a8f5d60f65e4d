"""Push persisted notifications to the personal group of their user."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from anyio import from_thread

from app.domain.entities import Notification

from .events import NEW_NOTIFICATION, personal_group
from .serializers import serialize_notification

if TYPE_CHECKING:
    from .hub import RealtimeHub

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their live delivery.

    Callable from async code (the send is scheduled on the running loop) and
    from worker threads started by anyio, e.g. synchronous FastAPI routes (the
    send runs on the loop that owns the thread). Outside both, the notification
    is only available through its history.
    """

    def __init__(self, hub_provider: Callable[[], "RealtimeHub | None"]) -> None:
        self._hub_provider = hub_provider
        self._tasks: set[asyncio.Task] = set()

    def dispatch(self, notification: Notification) -> None:
        """Schedule ``notification`` to be delivered to its user."""

        hub = self._hub_provider()
        if hub is None:
            logger.debug("No realtime hub installed; notification %s not pushed", notification.id)
            return

        group_id = personal_group(notification.user_id)
        payload = serialize_notification(notification)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(hub.broadcaster.publish, group_id, NEW_NOTIFICATION, payload)
            except RuntimeError:
                logger.debug(
                    "No event loop reachable; notification %s stays in history only",
                    notification.id,
                )
        else:
            task = loop.create_task(hub.broadcaster.publish(group_id, NEW_NOTIFICATION, payload))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


__all__ = ["NotificationPublisher"]
