from __future__ import annotations

import requests

from school_attendance.client.api import (
    ApiClient,
    NetworkFailure,
    Ok,
    RequestContext,
    ServerError,
    Unauthorized,
    ValidationFailure,
)
from school_attendance.client.config import ClientConfig

from tests.fakes import FakeHttpSession, FakeResponse


def _client(*responses, error=None):
    session = FakeHttpSession(*responses, error=error)
    return ApiClient("http://api.test/", timeout=3.0, session=session), session


def test_ok_result_and_bearer_header():
    api, session = _client(FakeResponse(200, {"message": "Attendance recorded successfully"}))

    result = api.scan_qr(RequestContext(token="abc"), qr_data="{}", student_id="S0001", location="Room")

    assert result == Ok({"message": "Attendance recorded successfully"})
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://api.test/api/student/qr/scan"
    assert call["headers"] == {"Authorization": "Bearer abc"}
    assert call["json"] == {"qr_data": "{}", "student_id": "S0001", "location": "Room"}
    assert call["timeout"] == 3.0


def test_validation_failure_carries_server_error():
    api, _ = _client(FakeResponse(400, {"error": "QR code has expired"}))

    result = api.scan_qr(RequestContext(), qr_data="{}", student_id="S1", location="")

    assert result == ValidationFailure("QR code has expired", 400)
    assert result.error_message("fallback") == "QR code has expired"


def test_unauthorized_logs_out_context():
    events = []
    context = RequestContext(token="expired", on_unauthorized=lambda: events.append("logout"))
    api, _ = _client(FakeResponse(401, {"error": "Invalid token"}))

    result = api.get_profile(context)

    assert isinstance(result, Unauthorized)
    assert context.token is None
    assert events == ["logout"]


def test_server_error_without_body_uses_default_message():
    api, _ = _client(FakeResponse(503, None))

    result = api.list_qr_sessions(RequestContext(token="t"))

    assert result == ServerError(503, "")
    assert result.error_message("Failed to process QR code") == "Failed to process QR code"


def test_network_failure_never_raises():
    api, _ = _client(error=requests.exceptions.ConnectTimeout("timed out"))

    result = api.check_in(RequestContext(token="t"), subject="Math")

    assert isinstance(result, NetworkFailure)
    assert not result.ok
    assert result.error_message("generic") == "generic"


def test_query_params_skip_empty_values():
    api, session = _client(FakeResponse(200, {"attendances": []}))

    api.my_attendance(RequestContext(token="t"), page=2, month=None)

    assert session.calls[0]["params"] == {"page": 2, "limit": 10}


def test_client_built_from_environment(monkeypatch):
    monkeypatch.setenv("SCHOOL_API_URL", "http://school.test/")
    monkeypatch.setenv("SCHOOL_HTTP_TIMEOUT", "4.5")
    monkeypatch.setenv("SCHOOL_CLIENT_PLATFORM", "Mobile")
    monkeypatch.delenv("SCHOOL_SOCKET_URL", raising=False)
    config = ClientConfig.from_env()
    session = FakeHttpSession(FakeResponse(200, {"status": "ok"}))

    ApiClient.from_config(config, session=session).list_qr_sessions(RequestContext(token="abc"))

    assert config.socket_url == "http://school.test"
    assert config.platform == "mobile"
    assert session.calls[0]["url"] == "http://school.test/api/admin/qr/sessions"
    assert session.calls[0]["timeout"] == 4.5
