from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, to_unix_seconds
from ..common.validators import optional_str, require_non_empty
from ..core.constants import ALLOWED_SESSION_DURATIONS, DEFAULT_SESSION_MINUTES
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.hub import Notifier
from ..qr.token import SessionToken, TokenFormatError, parse_token, render_png_base64
from ..users.repository import StudentRepository
from .model import QRReportRow, QRSession
from .repository import QRSessionRepository

logger = logging.getLogger(__name__)


def new_session_code() -> str:
    return secrets.token_hex(16)


def parse_duration(value: Any) -> int:
    if value in (None, "", 0):
        return DEFAULT_SESSION_MINUTES
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError("duration must be a number of minutes")
    if minutes == 0:
        return DEFAULT_SESSION_MINUTES
    if minutes not in ALLOWED_SESSION_DURATIONS:
        allowed = ", ".join(str(m) for m in ALLOWED_SESSION_DURATIONS)
        raise ValidationError(f"duration must be one of: {allowed}")
    return minutes


@dataclass(frozen=True)
class GeneratedSession:
    session: QRSession
    token: SessionToken
    qr_code: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_code": self.session.session_code,
            "qr_code": self.qr_code,
            # naive stored times are server-local; send the offset with them
            "expires_at": self.session.expires_at.astimezone().isoformat(),
            "subject": self.session.subject,
            "teacher": self.session.teacher,
            "location": self.session.location,
        }


@dataclass(frozen=True)
class ScanReceipt:
    student_name: str
    subject: str
    teacher: str
    scan_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": "Attendance recorded successfully",
            "student_name": self.student_name,
            "subject": self.subject,
            "teacher": self.teacher,
            "scan_time": self.scan_time.isoformat(),
        }


@dataclass(frozen=True)
class SessionReport:
    session: QRSession
    rows: Sequence[QRReportRow]

    def to_dict(self) -> dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "attendances": [r.to_dict() for r in self.rows],
            "total_count": len(self.rows),
        }


class QRSessionService:
    """Issues attendance sessions and records scans against them.

    The server is the authority on expiry, session state and the one-scan
    per (session, student) rule; whatever the client checked is re-checked.
    """

    def __init__(
        self,
        sessions: QRSessionRepository,
        students: StudentRepository,
        notifier: Optional[Notifier] = None,
    ):
        self._sessions = sessions
        self._students = students
        self._notifier = notifier

    def create_session(
        self,
        data: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> GeneratedSession:
        subject = require_non_empty(data.get("subject"), "subject")
        teacher = require_non_empty(data.get("teacher"), "teacher")
        location = require_non_empty(data.get("location"), "location")
        minutes = parse_duration(data.get("duration"))

        # The token carries whole seconds, so the stored expiry does too.
        now = (now or now_local()).replace(microsecond=0)
        expires_at = now + timedelta(minutes=minutes)
        code = new_session_code()

        pk = self._sessions.create_session(
            session_code=code,
            subject=subject,
            teacher=teacher,
            location=location,
            expires_at=expires_at,
        )
        session = self._sessions.get_by_code(code) or QRSession(
            id=pk,
            session_code=code,
            subject=subject,
            teacher=teacher,
            location=location,
            expires_at=expires_at,
            created_at=now,
        )

        token = SessionToken(
            session_code=code,
            subject=subject,
            teacher=teacher,
            location=location,
            expires_at=to_unix_seconds(expires_at),
        )
        logger.info("QR session %s created (%s, %d min)", code, subject, minutes)
        return GeneratedSession(session=session, token=token, qr_code=render_png_base64(token.to_json()))

    def scan(
        self,
        *,
        qr_data: str,
        student_id: str,
        location: str = "",
        now: Optional[datetime] = None,
    ) -> ScanReceipt:
        now = now or now_local()

        try:
            token = parse_token(qr_data)
        except TokenFormatError:
            raise ValidationError("Invalid QR code data")

        if token.is_expired(now):
            raise ValidationError("QR code has expired")

        session = self._sessions.get_active_by_code(token.session_code)
        if not session:
            raise NotFoundError("QR session not found or inactive")
        if session.is_expired(now):
            raise ValidationError("QR code has expired")

        if self._sessions.has_attendance(session.session_code, student_id):
            raise ValidationError("Student already marked attendance for this session")

        student = self._students.get_by_student_id(student_id)
        if not student:
            raise NotFoundError("Student not found")

        recorded = self._sessions.record_attendance(
            session_code=session.session_code,
            student_id=student.student_id,
            scan_time=now,
            location=optional_str(location),
        )
        if recorded is None:
            raise ValidationError("Student already marked attendance for this session")

        self._announce(student.id, student.name, session, now)
        return ScanReceipt(
            student_name=student.name,
            subject=session.subject,
            teacher=session.teacher,
            scan_time=now,
        )

    def _announce(self, student_pk: int, student_name: str, session: QRSession, at: datetime) -> None:
        if self._notifier is None:
            return
        self._notifier.notify_attendance(student_name, "checked in via QR code", at)
        self._notifier.notify_parent(
            student_pk,
            student_name,
            f"present in {session.subject} at {at.strftime('%H:%M')}",
        )

    def list_active(self) -> Sequence[QRSession]:
        return self._sessions.list_active()

    def deactivate(self, session_code: str) -> None:
        if not self._sessions.get_by_code(session_code):
            raise NotFoundError("Session not found")
        self._sessions.deactivate(session_code)
        logger.info("QR session %s deactivated", session_code)

    def report(self, session_code: str) -> SessionReport:
        session = self._sessions.get_by_code(session_code)
        if not session:
            raise NotFoundError("Session not found")
        return SessionReport(session=session, rows=self._sessions.report_rows(session_code))
