from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

import requests
from werkzeug.security import generate_password_hash

from school_attendance.attendance.model import AttendanceCounts, AttendanceRecord, StudentSummary
from school_attendance.common.pagination import Page
from school_attendance.core.enums import AttendanceStatus
from school_attendance.qr_sessions.model import QRAttendance, QRReportRow, QRSession
from school_attendance.users.model import Admin, Student


def _page(items, page):
    total = len(items)
    return Page(items=items[page.offset : page.offset + page.limit], total=total, page=page.page, limit=page.limit)


class FakeStudentsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Student] = {}
        self.deleted: set[int] = set()

    def add(self, student_id="S0001", name="Demo Student", email="student@school.local",
            password="student123", class_name="10A", grade="10", is_active=True) -> Student:
        pk = self.create_student(
            student_id=student_id,
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            class_name=class_name,
            grade=grade,
        )
        if not is_active:
            self.rows[pk] = replace(self.rows[pk], is_active=False)
        return self.rows[pk]

    def _visible(self):
        return [s for pk, s in sorted(self.rows.items()) if pk not in self.deleted]

    def get_by_id(self, pk):
        return self.rows.get(int(pk)) if int(pk) not in self.deleted else None

    def get_by_student_id(self, student_id):
        return next((s for s in self._visible() if s.student_id == student_id), None)

    def get_by_email(self, email):
        return next((s for s in self._visible() if s.email == email), None)

    def exists_student_id_or_email(self, student_id, email):
        return any(s.student_id == student_id or s.email == email for s in self._visible())

    def create_student(self, *, student_id, name, email, password_hash, class_name, grade,
                       phone_number=None, address=None):
        pk = self._next_id
        self._next_id += 1
        self.rows[pk] = Student(
            id=pk,
            student_id=student_id,
            name=name,
            email=email,
            password_hash=password_hash,
            class_name=class_name,
            grade=grade,
            phone_number=phone_number,
            address=address,
            created_at=datetime(2026, 9, 1, 8, 0, 0),
        )
        return pk

    def update_student(self, pk, *, fields):
        if int(pk) not in self.rows:
            return False
        self.rows[int(pk)] = replace(self.rows[int(pk)], **fields)
        return True

    def soft_delete(self, pk):
        if int(pk) not in self.rows or int(pk) in self.deleted:
            return False
        self.deleted.add(int(pk))
        return True

    def search(self, *, page, class_name=None, grade=None, search=None):
        items = self._visible()
        if class_name:
            items = [s for s in items if s.class_name == class_name]
        if grade:
            items = [s for s in items if s.grade == grade]
        if search:
            term = search.lower()
            items = [s for s in items if term in s.name.lower() or term in s.student_id.lower() or term in s.email]
        return _page(sorted(items, key=lambda s: s.name), page)

    def list_active_by_class(self, class_name):
        return [s for s in self._visible() if s.class_name == class_name and s.is_active]

    def list_active_by_grade(self, grade):
        return [s for s in self._visible() if s.grade == grade and s.is_active]


class FakeAdminsRepo:
    def __init__(self):
        self.rows: dict[int, Admin] = {}

    def add(self, email="admin@school.local", password="admin123", is_active=True) -> Admin:
        pk = len(self.rows) + 1
        self.rows[pk] = Admin(
            id=pk,
            username=f"admin{pk}",
            email=email,
            password_hash=generate_password_hash(password),
            name="Demo Admin",
            is_active=is_active,
        )
        return self.rows[pk]

    def get_by_id(self, pk):
        return self.rows.get(int(pk))

    def get_by_email(self, email):
        return next((a for a in self.rows.values() if a.email == email), None)


class FakeAttendanceRepo:
    def __init__(self, students: FakeStudentsRepo):
        self._students = students
        self._next_id = 1
        self.rows: dict[int, AttendanceRecord] = {}

    def _with_student(self, record: AttendanceRecord) -> AttendanceRecord:
        s = self._students.rows.get(record.student_id)
        if s is None:
            return record
        summary = StudentSummary(id=s.id, student_id=s.student_id, name=s.name, class_name=s.class_name, grade=s.grade)
        return replace(record, student=summary)

    def get_by_id(self, record_id):
        r = self.rows.get(int(record_id))
        return self._with_student(r) if r else None

    def get_for_student_and_date(self, student_id, day):
        r = next((r for r in self.rows.values() if r.student_id == student_id and r.date == day), None)
        return self._with_student(r) if r else None

    def create_record(self, *, student_id, day, status, check_in_time=None, notes=None, subject=None):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = AttendanceRecord(
            id=rid, student_id=student_id, date=day, status=status,
            check_in_time=check_in_time, notes=notes, subject=subject,
        )
        return rid

    def update_checkin(self, *, record_id, check_in_time, status, subject=None):
        self.rows[record_id] = replace(self.rows[record_id], check_in_time=check_in_time, status=status, subject=subject)
        return True

    def update_checkout(self, *, record_id, check_out_time):
        self.rows[record_id] = replace(self.rows[record_id], check_out_time=check_out_time)
        return True

    def update_record(self, record_id, *, fields):
        self.rows[record_id] = replace(self.rows[record_id], **fields)
        return True

    def list_for_student(self, student_id, *, page, start=None, end=None):
        items = [r for r in self.rows.values() if r.student_id == student_id]
        if start is not None and end is not None:
            items = [r for r in items if start <= r.date <= end]
        items = sorted(items, key=lambda r: r.date, reverse=True)
        return _page([self._with_student(r) for r in items], page)

    def list_all(self, *, page, class_name=None, grade=None, day=None, status=None):
        items = [self._with_student(r) for r in self.rows.values()]
        if class_name:
            items = [r for r in items if r.student and r.student.class_name == class_name]
        if grade:
            items = [r for r in items if r.student and r.student.grade == grade]
        if day is not None:
            items = [r for r in items if r.date == day]
        if status is not None:
            items = [r for r in items if r.status == status]
        return _page(sorted(items, key=lambda r: (r.date, r.id), reverse=True), page)

    def count_by_student(self, *, student_id=None, start=None, end=None):
        out = []
        for s in self._students._visible():
            if student_id is not None and s.id != student_id:
                continue
            rows = [r for r in self.rows.values() if r.student_id == s.id]
            if start is not None and end is not None:
                rows = [r for r in rows if start <= r.date <= end]
            out.append(
                AttendanceCounts(
                    student_id=s.id,
                    student_name=s.name,
                    total_days=len(rows),
                    present_days=sum(1 for r in rows if r.status == AttendanceStatus.PRESENT),
                    absent_days=sum(1 for r in rows if r.status == AttendanceStatus.ABSENT),
                    late_days=sum(1 for r in rows if r.status == AttendanceStatus.LATE),
                )
            )
        return sorted(out, key=lambda c: c.student_name)


class FakeQRSessionsRepo:
    def __init__(self, students: FakeStudentsRepo):
        self._students = students
        self.sessions: dict[str, QRSession] = {}
        self.scans: list[QRAttendance] = []

    def add(self, session_code="S1", *, expires_at, subject="Math", teacher="Ms. X",
            location="Room 1", is_active=True) -> QRSession:
        self.create_session(
            session_code=session_code, subject=subject, teacher=teacher, location=location, expires_at=expires_at
        )
        if not is_active:
            self.deactivate(session_code)
        return self.sessions[session_code]

    def create_session(self, *, session_code, subject, teacher, location, expires_at):
        pk = len(self.sessions) + 1
        self.sessions[session_code] = QRSession(
            id=pk, session_code=session_code, subject=subject, teacher=teacher,
            location=location, expires_at=expires_at, created_at=datetime(2026, 10, 19, 8, 0, pk % 60),
        )
        return pk

    def get_by_code(self, session_code):
        return self.sessions.get(session_code)

    def get_active_by_code(self, session_code):
        s = self.sessions.get(session_code)
        return s if s and s.is_active else None

    def list_active(self):
        return sorted((s for s in self.sessions.values() if s.is_active), key=lambda s: s.id, reverse=True)

    def deactivate(self, session_code):
        if session_code in self.sessions:
            self.sessions[session_code] = replace(self.sessions[session_code], is_active=False)

    def has_attendance(self, session_code, student_id):
        return any(a.session_code == session_code and a.student_id == student_id for a in self.scans)

    def record_attendance(self, *, session_code, student_id, scan_time, location):
        if self.has_attendance(session_code, student_id):
            return None
        self.scans.append(
            QRAttendance(id=len(self.scans) + 1, session_code=session_code, student_id=student_id,
                         scan_time=scan_time, location=location)
        )
        return len(self.scans)

    def report_rows(self, session_code):
        rows = []
        for a in sorted((a for a in self.scans if a.session_code == session_code), key=lambda a: a.scan_time):
            s = self._students.get_by_student_id(a.student_id)
            if s is not None:
                rows.append(QRReportRow(attendance=a, student_name=s.name, class_name=s.class_name, grade=s.grade))
        return rows


class RecordingNotifier:
    def __init__(self):
        self.attendance: list[tuple] = []
        self.parent: list[tuple] = []

    def notify_attendance(self, student_name, status, at):
        self.attendance.append((student_name, status, at))

    def notify_parent(self, student_pk, student_name, message):
        self.parent.append((student_pk, student_name, message))


class FakeResponse:
    def __init__(self, status_code=200, body: Any = None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json body")
        return self._body


class FakeHttpSession:
    """Stands in for ``requests.Session``; records every call."""

    def __init__(self, *responses, error: Optional[Exception] = None):
        self._responses = list(responses)
        self._error = error
        self.calls: list[dict] = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self._error is not None:
            raise self._error
        if not self._responses:
            raise requests.exceptions.ConnectionError("no response queued")
        return self._responses.pop(0)
