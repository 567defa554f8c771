from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import iso_or_none
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class StudentSummary:
    id: int
    student_id: str
    name: str
    class_name: str
    grade: str


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one day."""

    id: int
    student_id: int
    date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    subject: Optional[str] = None
    student: Optional[StudentSummary] = None

    def to_dict(self) -> dict[str, Any]:
        out = {
            "id": self.id,
            "student_id": self.student_id,
            "date": self.date.isoformat(),
            "check_in_time": iso_or_none(self.check_in_time),
            "check_out_time": iso_or_none(self.check_out_time),
            "status": self.status.value,
            "notes": self.notes or "",
            "subject": self.subject or "",
        }
        if self.student is not None:
            out["student"] = {
                "id": self.student.id,
                "student_id": self.student.student_id,
                "name": self.student.name,
                "class": self.student.class_name,
                "grade": self.student.grade,
            }
        return out


@dataclass(frozen=True)
class AttendanceCounts:
    """Read-model: raw per-student status counts used for statistics."""

    student_id: int
    student_name: str
    total_days: int
    present_days: int
    absent_days: int
    late_days: int


@dataclass(frozen=True)
class AttendanceStats:
    student_id: int
    student_name: str
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    attendance_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "total_days": self.total_days,
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "late_days": self.late_days,
            "attendance_rate": self.attendance_rate,
        }
