from __future__ import annotations

from enum import Enum


class UserType(str, Enum):
    """Account kinds carried in the bearer token."""

    STUDENT = "student"
    ADMIN = "admin"
    PARENT = "parent"


class AttendanceStatus(str, Enum):
    """Daily attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NotificationType(str, Enum):
    ATTENDANCE = "attendance"
    PARENT_ALERT = "parent_alert"
