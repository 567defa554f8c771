from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone
from .model import AttendanceCounts, AttendanceRecord, StudentSummary
from .repository import AttendanceRepository

_SELECT = """
    SELECT a.id, a.student_id, a.date, a.check_in_time, a.check_out_time,
           a.status, a.notes, a.subject,
           s.student_id AS student_code, s.name AS student_name,
           s.class_name, s.grade
    FROM attendances a
    JOIN students s ON s.id = a.student_id
"""

_EDITABLE = {"status", "notes", "subject"}


def _to_record(r: dict) -> AttendanceRecord:
    student = None
    if r.get("student_code") is not None:
        student = StudentSummary(
            id=int(r["student_id"]),
            student_id=r["student_code"],
            name=r["student_name"],
            class_name=r["class_name"],
            grade=r["grade"],
        )
    return AttendanceRecord(
        id=int(r["id"]),
        student_id=int(r["student_id"]),
        date=r["date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        notes=r.get("notes"),
        subject=r.get("subject"),
        student=student,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_student_and_date(self, student_id: int, day: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.student_id=%s AND a.date=%s", (int(student_id), day))
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendances(student_id, date, check_in_time, status, notes, subject)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(student_id), day, check_in_time, status.value, notes, subject),
            )
            return int(cur.lastrowid)

    def update_checkin(
        self,
        *,
        record_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        subject: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendances
                SET check_in_time=%s, status=%s, subject=%s
                WHERE id=%s
                """,
                (check_in_time, status.value, subject, int(record_id)),
            )
            return cur.rowcount > 0

    def update_checkout(self, *, record_id: int, check_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendances SET check_out_time=%s WHERE id=%s",
                (check_out_time, int(record_id)),
            )
            return cur.rowcount > 0

    def update_record(self, record_id: int, *, fields: Mapping[str, Any]) -> bool:
        sets: list[str] = []
        params: list[object] = []
        for key, value in fields.items():
            if key not in _EDITABLE:
                raise ValueError(f"Unsupported attendance field: {key}")
            sets.append(f"{key}=%s")
            params.append(value.value if isinstance(value, AttendanceStatus) else value)
        if not sets:
            return False

        params.append(int(record_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE attendances SET {', '.join(sets)} WHERE id=%s", tuple(params))
            return cur.rowcount > 0

    def _page(self, clauses: list[str], params: list[object], page: PageRequest, order_by: str) -> Page[AttendanceRecord]:
        where = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM attendances a
                JOIN students s ON s.id = a.student_id
                {where}
                """,
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total", 0))

            cur.execute(
                f"{_SELECT} {where} ORDER BY {order_by} LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            items = [_to_record(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page.page, limit=page.limit)

    def list_for_student(
        self,
        student_id: int,
        *,
        page: PageRequest,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Page[AttendanceRecord]:
        clauses = ["a.student_id=%s"]
        params: list[object] = [int(student_id)]
        if start is not None and end is not None:
            clauses.append("a.date BETWEEN %s AND %s")
            params.extend([start, end])
        return self._page(clauses, params, page, "a.date DESC")

    def list_all(
        self,
        *,
        page: PageRequest,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        day: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Page[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []
        if class_name:
            clauses.append("s.class_name=%s")
            params.append(class_name)
        if grade:
            clauses.append("s.grade=%s")
            params.append(grade)
        if day is not None:
            clauses.append("a.date=%s")
            params.append(day)
        if status is not None:
            clauses.append("a.status=%s")
            params.append(status.value)
        return self._page(clauses, params, page, "a.date DESC, a.id DESC")

    def count_by_student(
        self,
        *,
        student_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceCounts]:
        join_cond = "a.student_id = s.id"
        join_params: list[object] = []
        if start is not None and end is not None:
            join_cond += " AND a.date BETWEEN %s AND %s"
            join_params.extend([start, end])

        clauses = ["s.deleted_at IS NULL"]
        params: list[object] = []
        if student_id is not None:
            clauses.append("s.id=%s")
            params.append(int(student_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    s.id AS student_id,
                    s.name AS student_name,
                    COUNT(a.id) AS total_days,
                    COUNT(CASE WHEN a.status = 'present' THEN 1 END) AS present_days,
                    COUNT(CASE WHEN a.status = 'absent' THEN 1 END) AS absent_days,
                    COUNT(CASE WHEN a.status = 'late' THEN 1 END) AS late_days
                FROM students s
                LEFT JOIN attendances a ON {join_cond}
                {build_where(clauses)}
                GROUP BY s.id, s.name
                ORDER BY s.name
                """,
                tuple(join_params + params),
            )
            return [
                AttendanceCounts(
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    total_days=int(r["total_days"] or 0),
                    present_days=int(r["present_days"] or 0),
                    absent_days=int(r["absent_days"] or 0),
                    late_days=int(r["late_days"] or 0),
                )
                for r in fetchall(cur)
            ]
