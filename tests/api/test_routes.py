from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_login_and_profile(client, student):
    resp = client.post("/api/auth/student/login", json={"email": "student@school.local", "password": "student123"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    profile = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.get_json()["user"]["student_id"] == student.student_id
    assert profile.get_json()["user_type"] == "student"


def test_login_with_wrong_password_is_401(client, student):
    resp = client.post("/api/auth/student/login", json={"email": "student@school.local", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid credentials"}


def test_auth_guard_errors(client, student_headers):
    assert client.get("/api/profile").get_json() == {"error": "Authorization header required"}
    bad = client.get("/api/profile", headers={"Authorization": "Bearer garbage"})
    assert (bad.status_code, bad.get_json()) == (401, {"error": "Invalid token"})
    forbidden = client.get("/api/admin/students", headers=student_headers)
    assert (forbidden.status_code, forbidden.get_json()) == (403, {"error": "Insufficient permissions"})


def test_register_conflict_is_409(client, student):
    payload = {
        "student_id": student.student_id,
        "name": "Copy",
        "email": "copy@school.local",
        "password": "secret1",
        "class": "10A",
        "grade": "10",
    }

    resp = client.post("/api/auth/student/register", json=payload)

    assert resp.status_code == 409


def test_admin_student_listing(client, admin_headers, student):
    resp = client.get("/api/admin/students?page=1&limit=5&class=10A", headers=admin_headers)

    body = resp.get_json()
    assert body["total"] == 1
    assert body["limit"] == 5
    assert body["students"][0]["class"] == "10A"


def test_checkin_created_then_updated(client, student_headers):
    first = client.post("/api/student/checkin", json={"subject": "Math"}, headers=student_headers)
    second = client.post("/api/student/checkin", json={"subject": "Math"}, headers=student_headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.get_json()["attendance"]["status"] == "present"


def test_checkout_without_checkin_is_404(client, student_headers):
    resp = client.post("/api/student/checkout", headers=student_headers)

    assert resp.status_code == 404


def test_admin_attendance_bad_status_is_400(client, admin_headers, student):
    resp = client.post(
        "/api/admin/attendance",
        json={"student_id": student.id, "date": "2026-10-19", "status": "nap"},
        headers=admin_headers,
    )

    assert resp.status_code == 400


def test_generate_then_scan_then_report(client, admin_headers, student_headers, student):
    generated = client.post(
        "/api/admin/qr/generate",
        json={"subject": "Math", "teacher": "Ms. X", "location": "Room 1", "duration": 30},
        headers=admin_headers,
    ).get_json()
    expires_at = datetime.fromisoformat(generated["expires_at"])
    qr_data = json.dumps(
        {
            "session_code": generated["session_code"],
            "subject": "Math",
            "teacher": "Ms. X",
            "location": "Room 1",
            "expires_at": int(expires_at.timestamp()),
        }
    )

    scan = client.post(
        "/api/student/qr/scan",
        json={"qr_data": qr_data, "student_id": student.student_id, "location": "Room 1"},
        headers=student_headers,
    )
    assert scan.status_code == 200
    assert scan.get_json()["message"] == "Attendance recorded successfully"

    dup = client.post("/api/student/qr/scan", json={"qr_data": qr_data}, headers=student_headers)
    assert (dup.status_code, dup.get_json()) == (
        400,
        {"error": "Student already marked attendance for this session"},
    )

    report = client.get(f"/api/admin/qr/sessions/{generated['session_code']}/report", headers=admin_headers)
    assert report.get_json()["total_count"] == 1

    sessions = client.get("/api/admin/qr/sessions", headers=admin_headers).get_json()["sessions"]
    assert [s["session_code"] for s in sessions] == [generated["session_code"]]


def test_scan_unknown_session_is_404(client, student_headers):
    qr_data = json.dumps({"session_code": "nope", "expires_at": int((datetime.now() + timedelta(minutes=5)).timestamp())})

    resp = client.post("/api/student/qr/scan", json={"qr_data": qr_data}, headers=student_headers)

    assert (resp.status_code, resp.get_json()) == (404, {"error": "QR session not found or inactive"})


@pytest.mark.parametrize(
    "body, error",
    [
        ({"student_id": "S0001"}, "qr_data is required"),
        ({"qr_data": json.dumps({"session_code": "S1", "expires_at": "1790000000"})}, "Invalid QR code data"),
    ],
)
def test_scan_rejects_bad_submissions(client, student_headers, body, error):
    resp = client.post("/api/student/qr/scan", json=body, headers=student_headers)

    assert (resp.status_code, resp.get_json()) == (400, {"error": error})


def test_generate_with_bad_duration_is_400(client, admin_headers):
    resp = client.post(
        "/api/admin/qr/generate",
        json={"subject": "Math", "teacher": "Ms. X", "location": "Room 1", "duration": 25},
        headers=admin_headers,
    )

    assert resp.status_code == 400
