from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from school_attendance.core.exceptions import NotFoundError, ValidationError
from school_attendance.qr.token import parse_token
from school_attendance.qr_sessions.service import QRSessionService, parse_duration

from tests.fakes import RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(qr_repo, students, notifier):
    return QRSessionService(qr_repo, students, notifier)


def _qr_data(session_code="S1", expires_at=None, now=None):
    expires_at = expires_at or (now + timedelta(minutes=10))
    return json.dumps(
        {
            "session_code": session_code,
            "subject": "Math",
            "teacher": "Ms. X",
            "location": "Room 1",
            "expires_at": int(expires_at.timestamp()),
        }
    )


@pytest.mark.parametrize("value,expected", [(None, 30), (0, 30), ("", 30), (15, 15), ("120", 120)])
def test_parse_duration_defaults_and_allowed_values(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", [20, -15, "abc", 240])
def test_parse_duration_rejects_other_values(value):
    with pytest.raises(ValidationError):
        parse_duration(value)


def test_create_session_persists_and_renders_token(service, qr_repo, fixed_now):
    generated = service.create_session(
        {"subject": "Math", "teacher": "Ms. X", "location": "Room 1", "duration": 45}, now=fixed_now
    )

    body = generated.to_dict()
    assert len(body["session_code"]) == 32
    expires_at = datetime.fromisoformat(body["expires_at"])
    assert expires_at.tzinfo is not None
    assert expires_at.timestamp() == generated.token.expires_at
    assert body["qr_code"]
    assert qr_repo.get_active_by_code(body["session_code"]) is not None

    token = parse_token(generated.token.to_json())
    assert token.session_code == body["session_code"]
    assert token.expires_at == int((fixed_now + timedelta(minutes=45)).timestamp())


def test_create_session_requires_fields(service):
    with pytest.raises(ValidationError):
        service.create_session({"subject": "Math", "teacher": "", "location": "Room 1"})


def test_scan_records_attendance_and_notifies(service, qr_repo, student, notifier, fixed_now):
    qr_repo.add("S1", expires_at=fixed_now + timedelta(minutes=30))

    receipt = service.scan(qr_data=_qr_data(now=fixed_now), student_id=student.student_id,
                           location="Room 1", now=fixed_now)

    assert receipt.to_dict()["message"] == "Attendance recorded successfully"
    assert receipt.subject == "Math"
    assert receipt.student_name == student.name
    assert len(qr_repo.scans) == 1
    assert notifier.attendance[0][0] == student.name
    assert notifier.parent[0][:2] == (student.id, student.name)
    assert "Math" in notifier.parent[0][2]


def test_scan_rejects_invalid_payload(service, fixed_now):
    with pytest.raises(ValidationError, match="Invalid QR code data"):
        service.scan(qr_data="not json", student_id="S0001", now=fixed_now)


def test_scan_rejects_expired_token(service, qr_repo, student, fixed_now):
    qr_repo.add("S1", expires_at=fixed_now + timedelta(minutes=30))

    with pytest.raises(ValidationError, match="QR code has expired"):
        service.scan(
            qr_data=_qr_data(expires_at=fixed_now - timedelta(seconds=10)),
            student_id=student.student_id,
            now=fixed_now,
        )


def test_scan_rechecks_expiry_against_stored_session(service, qr_repo, student, fixed_now):
    qr_repo.add("S1", expires_at=fixed_now - timedelta(minutes=1))

    with pytest.raises(ValidationError, match="QR code has expired"):
        service.scan(qr_data=_qr_data(now=fixed_now), student_id=student.student_id, now=fixed_now)


def test_scan_unknown_or_inactive_session(service, qr_repo, student, fixed_now):
    qr_repo.add("S2", expires_at=fixed_now + timedelta(minutes=30), is_active=False)

    with pytest.raises(NotFoundError, match="QR session not found or inactive"):
        service.scan(qr_data=_qr_data("S1", now=fixed_now), student_id=student.student_id, now=fixed_now)
    with pytest.raises(NotFoundError):
        service.scan(qr_data=_qr_data("S2", now=fixed_now), student_id=student.student_id, now=fixed_now)


def test_scan_twice_is_rejected(service, qr_repo, student, fixed_now):
    qr_repo.add("S1", expires_at=fixed_now + timedelta(minutes=30))
    service.scan(qr_data=_qr_data(now=fixed_now), student_id=student.student_id, now=fixed_now)

    with pytest.raises(ValidationError, match="already marked attendance"):
        service.scan(qr_data=_qr_data(now=fixed_now), student_id=student.student_id, now=fixed_now)
    assert len(qr_repo.scans) == 1


def test_scan_unknown_student_writes_nothing(service, qr_repo, notifier, fixed_now):
    qr_repo.add("S1", expires_at=fixed_now + timedelta(minutes=30))

    with pytest.raises(NotFoundError, match="Student not found"):
        service.scan(qr_data=_qr_data(now=fixed_now), student_id="NOPE", now=fixed_now)

    assert qr_repo.scans == []
    assert notifier.attendance == []


def test_report_and_deactivate(service, qr_repo, student, fixed_now):
    qr_repo.add("S1", expires_at=fixed_now + timedelta(minutes=30))
    service.scan(qr_data=_qr_data(now=fixed_now), student_id=student.student_id, now=fixed_now)

    report = service.report("S1").to_dict()
    assert report["total_count"] == 1
    assert report["attendances"][0]["student_name"] == student.name
    assert report["attendances"][0]["class"] == "10A"

    service.deactivate("S1")
    assert service.list_active() == []

    with pytest.raises(NotFoundError):
        service.report("missing")
    with pytest.raises(NotFoundError):
        service.deactivate("missing")
