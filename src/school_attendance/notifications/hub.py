"""Server side of the notification relay.

Every notification is broadcast as one JSON text frame on the
``notification`` Socket.IO event to all connected clients.
"""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Optional, Protocol, Sequence

from flask import Flask, request
from flask_socketio import SocketIO

from ..common.datetime_utils import now_local
from ..core.constants import NOTIFICATION_EVENT
from ..core.enums import NotificationType, Priority, UserType
from .model import Notification

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify_attendance(self, student_name: str, status: str, at: datetime) -> None:
        raise NotImplementedError

    def notify_parent(self, student_pk: int, student_name: str, message: str) -> None:
        raise NotImplementedError


class NotificationHub(Notifier):
    def __init__(self, socketio: Optional[SocketIO] = None):
        self.socketio = socketio or SocketIO()
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    def init_app(self, app: Flask, *, allowed_origins: Sequence[str] = ()) -> None:
        # None keeps Socket.IO on same-origin only; an empty list would switch the check off.
        origins = list(allowed_origins) or None
        self.socketio.init_app(app, cors_allowed_origins=origins, async_mode="threading")
        self.socketio.on_event("connect", self._on_connect)
        self.socketio.on_event("disconnect", self._on_disconnect)

    def _on_connect(self, auth=None):
        logger.info("Notification client connected sid=%s", getattr(request, "sid", "?"))

    def _on_disconnect(self, *args):
        logger.info("Notification client disconnected sid=%s", getattr(request, "sid", "?"))

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def broadcast(self, notification: Notification) -> Notification:
        self.socketio.emit(NOTIFICATION_EVENT, notification.to_json())
        logger.debug("Broadcast notification id=%s type=%s", notification.id, notification.type)
        return notification

    def notify_attendance(self, student_name: str, status: str, at: datetime) -> Notification:
        return self.broadcast(
            Notification(
                id=self._next_id(),
                type=NotificationType.ATTENDANCE.value,
                title="Attendance Update",
                message=f"{student_name} {status} at {at.strftime('%H:%M')}",
                priority=Priority.MEDIUM.value,
                created_at=now_local(),
            )
        )

    def notify_parent(self, student_pk: int, student_name: str, message: str) -> Notification:
        return self.broadcast(
            Notification(
                id=self._next_id(),
                type=NotificationType.PARENT_ALERT.value,
                title="Student Notification",
                message=f"Student {student_name}: {message}",
                user_id=student_pk,
                user_type=UserType.PARENT.value,
                priority=Priority.HIGH.value,
                created_at=now_local(),
            )
        )
