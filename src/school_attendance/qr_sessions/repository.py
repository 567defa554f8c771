from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import QRReportRow, QRSession


class QRSessionRepository(Protocol):
    def create_session(
        self,
        *,
        session_code: str,
        subject: str,
        teacher: str,
        location: str,
        expires_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_by_code(self, session_code: str) -> Optional[QRSession]:
        raise NotImplementedError

    def get_active_by_code(self, session_code: str) -> Optional[QRSession]:
        raise NotImplementedError

    def list_active(self) -> Sequence[QRSession]:
        """Active sessions, newest first."""

        raise NotImplementedError

    def deactivate(self, session_code: str) -> None:
        raise NotImplementedError

    def has_attendance(self, session_code: str, student_id: str) -> bool:
        raise NotImplementedError

    def record_attendance(
        self,
        *,
        session_code: str,
        student_id: str,
        scan_time: datetime,
        location: str,
    ) -> Optional[int]:
        """Insert one scan; return None when the student already scanned this session."""

        raise NotImplementedError

    def report_rows(self, session_code: str) -> Sequence[QRReportRow]:
        raise NotImplementedError
