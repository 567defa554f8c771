from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

import socketio

from ..core.constants import NOTIFICATION_EVENT, NOTIFICATION_FEED_CAPACITY
from ..core.enums import Priority
from ..notifications.model import Notification, NotificationFormatError
from .config import ClientConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertStyle:
    duration_ms: int
    color: str


ALERT_STYLE = AlertStyle(duration_ms=8000, color="#ef4444")
WARNING_STYLE = AlertStyle(duration_ms=5000, color="#f59e0b")
SUCCESS_STYLE = AlertStyle(duration_ms=5000, color="#10b981")


def alert_style(priority: str) -> AlertStyle:
    if priority == Priority.HIGH.value:
        return ALERT_STYLE
    if priority == Priority.MEDIUM.value:
        return WARNING_STYLE
    return SUCCESS_STYLE


class NotificationFeed:
    """Newest-first in-memory list of notifications, capped at ``capacity``."""

    def __init__(self, capacity: int = NOTIFICATION_FEED_CAPACITY):
        self._capacity = capacity
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    def push(self, notification: Notification) -> None:
        with self._lock:
            self._items.insert(0, notification)
            del self._items[self._capacity:]

    @property
    def notifications(self) -> tuple[Notification, ...]:
        with self._lock:
            return tuple(self._items)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._items if not n.read)

    def mark_as_read(self, notification_id: int) -> None:
        with self._lock:
            self._items = [replace(n, read=True) if n.id == notification_id else n for n in self._items]

    def clear_all(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


AlertHook = Callable[[Notification, AlertStyle], None]


class NotificationRelay:
    """Listens on the notification socket and feeds a ``NotificationFeed``.

    Reconnection is left to python-socketio: bounded attempts with
    exponential backoff. The feed is kept across reconnects; messages sent
    while disconnected are not replayed.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        feed: Optional[NotificationFeed] = None,
        on_alert: Optional[AlertHook] = None,
        client: Optional[Any] = None,
    ):
        self.config = config
        self.feed = feed if feed is not None else NotificationFeed()
        self._on_alert = on_alert
        self._sio = client if client is not None else socketio.Client(
            reconnection=True,
            reconnection_attempts=config.reconnection_attempts,
            reconnection_delay=config.reconnection_delay,
            reconnection_delay_max=config.reconnection_delay_max,
        )
        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on(NOTIFICATION_EVENT, self.on_message)

    @property
    def connected(self) -> bool:
        return bool(getattr(self._sio, "connected", False))

    def connect(self) -> None:
        self._sio.connect(self.config.socket_url)

    def disconnect(self) -> None:
        self._sio.disconnect()

    def _on_connect(self) -> None:
        logger.info("Connected to notification socket %s", self.config.socket_url)

    def _on_disconnect(self, *args) -> None:
        logger.info("Notification socket disconnected; waiting for reconnection")

    def on_message(self, raw: Any) -> Optional[Notification]:
        try:
            notification = Notification.from_json(raw)
        except NotificationFormatError as e:
            logger.warning("Dropping malformed notification: %s", e)
            return None

        self.feed.push(notification)
        if self._on_alert is not None:
            self._on_alert(notification, alert_style(notification.priority))
        return notification
