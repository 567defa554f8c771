from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import iso_or_none
from ..common.validators import optional_str
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class QRSession:
    """A time-boxed attendance window issued by an admin."""

    id: int
    session_code: str
    subject: str
    teacher: str
    location: str
    expires_at: datetime
    is_active: bool = True
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_code": self.session_code,
            "subject": self.subject,
            "teacher": self.teacher,
            "location": self.location,
            "expires_at": self.expires_at.isoformat(),
            "is_active": self.is_active,
            "created_at": iso_or_none(self.created_at),
        }


@dataclass(frozen=True)
class QRAttendance:
    id: int
    session_code: str
    student_id: str
    scan_time: datetime
    location: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_code": self.session_code,
            "student_id": self.student_id,
            "scan_time": self.scan_time.isoformat(),
            "location": self.location,
        }


@dataclass(frozen=True)
class QRReportRow:
    """Read-model: one scan joined with the student it belongs to."""

    attendance: QRAttendance
    student_name: str
    class_name: str
    grade: str

    def to_dict(self) -> dict[str, Any]:
        out = self.attendance.to_dict()
        out.update({"student_name": self.student_name, "class": self.class_name, "grade": self.grade})
        return out


@dataclass(frozen=True)
class ScanSubmission:
    """Body of a scan request; ``qr_data`` is the decoded text, sent verbatim."""

    qr_data: str
    student_id: str = ""
    location: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScanSubmission":
        qr_data = data.get("qr_data")
        if not isinstance(qr_data, str) or not qr_data:
            raise ValidationError("qr_data is required")
        return cls(
            qr_data=qr_data,
            student_id=optional_str(data.get("student_id")),
            location=optional_str(data.get("location")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"qr_data": self.qr_data, "student_id": self.student_id, "location": self.location}
