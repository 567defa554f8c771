from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import iso_or_none
from ..core.enums import Priority


class NotificationFormatError(ValueError):
    """Raised when an inbound frame is not a notification object."""


@dataclass(frozen=True)
class Notification:
    """One pushed event, as sent over the socket and held in client feeds."""

    id: int
    type: str
    title: str
    message: str
    user_id: int = 0
    user_type: str = ""
    priority: str = Priority.LOW.value
    read: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "user_id": self.user_id,
            "user_type": self.user_type,
            "priority": self.priority,
            "read": self.read,
            "created_at": iso_or_none(self.created_at),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Notification":
        for key in ("type", "title", "message"):
            if not isinstance(data.get(key), str):
                raise NotificationFormatError(f"notification field '{key}' is missing")

        created_at = data.get("created_at")
        if isinstance(created_at, str) and created_at:
            try:
                created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
            except ValueError:
                raise NotificationFormatError("notification created_at is not an ISO timestamp")
        else:
            created_at = None

        try:
            return cls(
                id=int(data.get("id") or 0),
                type=data["type"],
                title=data["title"],
                message=data["message"],
                user_id=int(data.get("user_id") or 0),
                user_type=str(data.get("user_type") or ""),
                priority=str(data.get("priority") or Priority.LOW.value),
                read=data.get("read") is True,
                created_at=created_at,
            )
        except (TypeError, ValueError) as e:
            raise NotificationFormatError(str(e))

    @classmethod
    def from_json(cls, raw: Any) -> "Notification":
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        if isinstance(raw, Mapping):
            return cls.from_dict(raw)
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            raise NotificationFormatError("notification frame is not JSON")
        if not isinstance(data, dict):
            raise NotificationFormatError("notification frame is not a JSON object")
        return cls.from_dict(data)
