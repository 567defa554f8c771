from __future__ import annotations

from datetime import datetime

import pytest

from school_attendance.container import wire_container
from school_attendance.core.enums import UserType
from school_attendance.main import create_app
from school_attendance.notifications.hub import NotificationHub
from school_attendance.users.tokens import TokenService

from tests.fakes import FakeAdminsRepo, FakeAttendanceRepo, FakeQRSessionsRepo, FakeStudentsRepo


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 19, 9, 30, 0)


@pytest.fixture
def students():
    return FakeStudentsRepo()


@pytest.fixture
def admins():
    return FakeAdminsRepo()


@pytest.fixture
def attendance_repo(students):
    return FakeAttendanceRepo(students)


@pytest.fixture
def qr_repo(students):
    return FakeQRSessionsRepo(students)


@pytest.fixture
def tokens():
    return TokenService("test-jwt-secret-0123456789abcdef0123", ttl_hours=1)


@pytest.fixture
def container(students, admins, attendance_repo, qr_repo, tokens):
    return wire_container(
        students_repo=students,
        admins_repo=admins,
        attendance_repo=attendance_repo,
        qr_sessions_repo=qr_repo,
        tokens=tokens,
        notifications=NotificationHub(),
    )


@pytest.fixture
def app(container):
    app = create_app(container, settings_module="config.testing")
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def student(students):
    return students.add()


@pytest.fixture
def admin(admins):
    return admins.add()


@pytest.fixture
def student_headers(tokens, student):
    return {"Authorization": f"Bearer {tokens.issue(student.id, UserType.STUDENT)}"}


@pytest.fixture
def admin_headers(tokens, admin):
    return {"Authorization": f"Bearer {tokens.issue(admin.id, UserType.ADMIN)}"}
