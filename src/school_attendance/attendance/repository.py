from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import AttendanceStatus
from .model import AttendanceCounts, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_student_and_date(self, student_id: int, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_record(
        self,
        *,
        student_id: int,
        day: date,
        status: AttendanceStatus,
        check_in_time: Optional[datetime] = None,
        notes: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_checkin(
        self,
        *,
        record_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        subject: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def update_checkout(self, *, record_id: int, check_out_time: datetime) -> bool:
        raise NotImplementedError

    def update_record(self, record_id: int, *, fields: Mapping[str, Any]) -> bool:
        """Admin edit of status/notes/subject."""

        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        page: PageRequest,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def list_all(
        self,
        *,
        page: PageRequest,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        day: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def count_by_student(
        self,
        *,
        student_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceCounts]:
        raise NotImplementedError
