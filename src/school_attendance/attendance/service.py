from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import month_bounds, now_local, parse_iso_date
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_str
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import StudentRepository
from .model import AttendanceCounts, AttendanceRecord, AttendanceStats
from .repository import AttendanceRepository


@dataclass(frozen=True)
class CheckInResult:
    record: AttendanceRecord
    created: bool


def parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value))
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Invalid status. Use one of: {allowed}")


def _parse_date(value: Any) -> date:
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def to_stats(counts: AttendanceCounts) -> AttendanceStats:
    rate = round(counts.present_days * 100.0 / counts.total_days, 2) if counts.total_days else 0.0
    return AttendanceStats(
        student_id=counts.student_id,
        student_name=counts.student_name,
        total_days=counts.total_days,
        present_days=counts.present_days,
        absent_days=counts.absent_days,
        late_days=counts.late_days,
        attendance_rate=rate,
    )


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, students: StudentRepository):
        self._attendance = attendance
        self._students = students

    def _reload(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(record_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    # ------------------------------------------------------------ student
    def check_in(self, student_id: int, *, subject: str = "", now: Optional[datetime] = None) -> CheckInResult:
        """Mark today present; a second check-in refreshes the same record."""

        now = now or now_local()
        today = now.date()
        subject = optional_str(subject) or None

        existing = self._attendance.get_for_student_and_date(student_id, today)
        if existing:
            self._attendance.update_checkin(
                record_id=existing.id,
                check_in_time=now,
                status=AttendanceStatus.PRESENT,
                subject=subject,
            )
            return CheckInResult(record=self._reload(existing.id), created=False)

        record_id = self._attendance.create_record(
            student_id=student_id,
            day=today,
            status=AttendanceStatus.PRESENT,
            check_in_time=now,
            subject=subject,
        )
        return CheckInResult(record=self._reload(record_id), created=True)

    def check_out(self, student_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()
        record = self._attendance.get_for_student_and_date(student_id, now.date())
        if not record:
            raise NotFoundError("No check-in record found for today")

        self._attendance.update_checkout(record_id=record.id, check_out_time=now)
        return self._reload(record.id)

    def my_attendance(self, student_id: int, *, page: PageRequest, month: Optional[str] = None) -> Page[AttendanceRecord]:
        start = end = None
        if month:
            try:
                start, end = month_bounds(month)
            except ValueError:
                raise ValidationError("Invalid month format")
        return self._attendance.list_for_student(student_id, page=page, start=start, end=end)

    # -------------------------------------------------------------- admin
    def list_all(
        self,
        *,
        page: PageRequest,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        day: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Page[AttendanceRecord]:
        return self._attendance.list_all(
            page=page,
            class_name=class_name or None,
            grade=grade or None,
            day=_parse_date(day) if day else None,
            status=parse_status(status) if status else None,
        )

    def create_record(self, data: Mapping[str, Any]) -> AttendanceRecord:
        try:
            student_id = int(data.get("student_id"))
        except (TypeError, ValueError):
            raise ValidationError("student_id is required")

        day = _parse_date(data.get("date"))
        status = parse_status(data.get("status") or AttendanceStatus.ABSENT.value)

        if not self._students.get_by_id(student_id):
            raise NotFoundError("Student not found")
        if self._attendance.get_for_student_and_date(student_id, day):
            raise ConflictError("Attendance record already exists for this date")

        record_id = self._attendance.create_record(
            student_id=student_id,
            day=day,
            status=status,
            notes=optional_str(data.get("notes")) or None,
            subject=optional_str(data.get("subject")) or None,
        )
        return self._reload(record_id)

    def update_record(self, record_id: int, data: Mapping[str, Any]) -> AttendanceRecord:
        record = self._reload(record_id)

        fields: dict[str, Any] = {}
        if data.get("status"):
            fields["status"] = parse_status(data["status"])
        for key in ("notes", "subject"):
            value = optional_str(data.get(key))
            if value:
                fields[key] = value

        if fields:
            self._attendance.update_record(record.id, fields=fields)
        return self._reload(record.id)

    def stats(
        self,
        *,
        student_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[AttendanceStats]:
        student_pk = None
        if student_id:
            try:
                student_pk = int(student_id)
            except ValueError:
                raise ValidationError("Invalid student ID")

        start = end = None
        if start_date and end_date:
            start, end = _parse_date(start_date), _parse_date(end_date)

        counts = self._attendance.count_by_student(student_id=student_pk, start=start, end=end)
        return [to_stats(c) for c in counts]
