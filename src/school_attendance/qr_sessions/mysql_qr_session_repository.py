from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import QRAttendance, QRReportRow, QRSession
from .repository import QRSessionRepository

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = "id, session_code, subject, teacher, location, expires_at, is_active, created_at"


def _to_session(r: dict) -> QRSession:
    return QRSession(
        id=int(r["id"]),
        session_code=r["session_code"],
        subject=r["subject"],
        teacher=r["teacher"],
        location=r["location"],
        expires_at=r["expires_at"],
        is_active=bool(r["is_active"]),
        created_at=r.get("created_at"),
    )


class MySQLQRSessionRepository(QRSessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_session(
        self,
        *,
        session_code: str,
        subject: str,
        teacher: str,
        location: str,
        expires_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO qr_sessions(session_code, subject, teacher, location, expires_at, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (session_code, subject, teacher, location, expires_at),
            )
            return int(cur.lastrowid)

    def get_by_code(self, session_code: str) -> Optional[QRSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM qr_sessions WHERE session_code=%s", (session_code,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_active_by_code(self, session_code: str) -> Optional[QRSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM qr_sessions WHERE session_code=%s AND is_active=1",
                (session_code,),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_active(self) -> Sequence[QRSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM qr_sessions WHERE is_active=1 ORDER BY created_at DESC, id DESC"
            )
            return [_to_session(r) for r in fetchall(cur)]

    def deactivate(self, session_code: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE qr_sessions SET is_active=0 WHERE session_code=%s", (session_code,))

    def has_attendance(self, session_code: str, student_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM qr_attendances WHERE session_code=%s AND student_id=%s LIMIT 1",
                (session_code, student_id),
            )
            return fetchone(cur) is not None

    def record_attendance(
        self,
        *,
        session_code: str,
        student_id: str,
        scan_time: datetime,
        location: str,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO qr_attendances(session_code, student_id, scan_time, location)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (session_code, student_id, scan_time, location),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError:
            # uq_qr_attendance: a concurrent scan won the race
            logger.info("Duplicate QR scan session=%s student=%s", session_code, student_id)
            return None

    def report_rows(self, session_code: str) -> Sequence[QRReportRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT qa.id, qa.session_code, qa.student_id, qa.scan_time, qa.location,
                       s.name AS student_name, s.class_name, s.grade
                FROM qr_attendances qa
                JOIN students s ON s.student_id = qa.student_id
                WHERE qa.session_code=%s
                ORDER BY qa.scan_time ASC, qa.id ASC
                """,
                (session_code,),
            )
            return [
                QRReportRow(
                    attendance=QRAttendance(
                        id=int(r["id"]),
                        session_code=r["session_code"],
                        student_id=r["student_id"],
                        scan_time=r["scan_time"],
                        location=r.get("location") or "",
                    ),
                    student_name=r["student_name"],
                    class_name=r["class_name"],
                    grade=r["grade"],
                )
                for r in fetchall(cur)
            ]
