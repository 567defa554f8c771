from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import TOKEN_TTL_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .notifications.hub import NotificationHub
from .qr_sessions.mysql_qr_session_repository import MySQLQRSessionRepository
from .qr_sessions.repository import QRSessionRepository
from .qr_sessions.service import QRSessionService
from .users.mysql_admin_repository import MySQLAdminRepository
from .users.mysql_student_repository import MySQLStudentRepository
from .users.repository import AdminRepository, StudentRepository
from .users.service import AuthService, StudentService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    students_repo: StudentRepository
    admins_repo: AdminRepository
    attendance_repo: AttendanceRepository
    qr_sessions_repo: QRSessionRepository

    tokens: TokenService
    notifications: NotificationHub

    auth_service: AuthService
    student_service: StudentService
    attendance_service: AttendanceService
    qr_session_service: QRSessionService


def wire_container(
    *,
    students_repo: StudentRepository,
    admins_repo: AdminRepository,
    attendance_repo: AttendanceRepository,
    qr_sessions_repo: QRSessionRepository,
    tokens: TokenService,
    notifications: NotificationHub,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""

    return Container(
        students_repo=students_repo,
        admins_repo=admins_repo,
        attendance_repo=attendance_repo,
        qr_sessions_repo=qr_sessions_repo,
        tokens=tokens,
        notifications=notifications,
        auth_service=AuthService(students_repo, admins_repo, tokens),
        student_service=StudentService(students_repo),
        attendance_service=AttendanceService(attendance_repo, students_repo),
        qr_session_service=QRSessionService(qr_sessions_repo, students_repo, notifications),
    )


def build_container(*, db_config: dict, jwt_secret: str, jwt_ttl_hours: int = TOKEN_TTL_HOURS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        students_repo=MySQLStudentRepository(conn),
        admins_repo=MySQLAdminRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        qr_sessions_repo=MySQLQRSessionRepository(conn),
        tokens=TokenService(jwt_secret, ttl_hours=jwt_ttl_hours),
        notifications=NotificationHub(),
    )
