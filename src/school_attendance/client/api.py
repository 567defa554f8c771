"""HTTP client for the attendance API.

Calls never raise on HTTP or transport problems. Each one returns an
``ApiResult``: ``Ok`` or one of the failure variants below. Credentials are
passed per call in a ``RequestContext`` instead of living in global state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import requests

from ..qr_sessions.model import ScanSubmission
from .config import ClientConfig

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    token: Optional[str] = None
    on_unauthorized: Optional[Callable[[], None]] = None

    def headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def logout(self) -> None:
        self.token = None
        if self.on_unauthorized is not None:
            self.on_unauthorized()


class ApiResult:
    ok = False

    def error_message(self, default: str) -> str:
        """Server supplied error text, or ``default`` when there is none."""
        return getattr(self, "message", "") or default


@dataclass(frozen=True)
class Ok(ApiResult):
    data: Any = None
    ok = True

    def error_message(self, default: str) -> str:
        return ""


@dataclass(frozen=True)
class NetworkFailure(ApiResult):
    reason: str

    def error_message(self, default: str) -> str:
        return default


@dataclass(frozen=True)
class ValidationFailure(ApiResult):
    message: str
    status: int = 400


@dataclass(frozen=True)
class Unauthorized(ApiResult):
    message: str = ""


@dataclass(frozen=True)
class ServerError(ApiResult):
    status: int
    message: str = ""


def _json_or_none(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _error_text(body: Any) -> str:
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return ""


class ApiClient:
    def __init__(self, base_url: str, *, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: ClientConfig, *, session: Optional[requests.Session] = None) -> "ApiClient":
        return cls(config.api_url, timeout=config.http_timeout, session=session)

    def _request(
        self,
        method: str,
        path: str,
        context: RequestContext,
        *,
        json: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ApiResult:
        url = f"{self._base_url}/api{path}"
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}
        try:
            resp = self._session.request(
                method,
                url,
                json=json,
                params=params or None,
                headers=context.headers(),
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return NetworkFailure(str(e))

        body = _json_or_none(resp)
        status = resp.status_code
        if 200 <= status < 300:
            return Ok(body)

        message = _error_text(body)
        logger.info("%s %s -> %s %s", method, url, status, message)
        if status == 401:
            context.logout()
            return Unauthorized(message)
        if status in (400, 422):
            return ValidationFailure(message, status)
        return ServerError(status, message)

    # ---------------------------------------------------------------- auth
    def student_login(self, context: RequestContext, email: str, password: str) -> ApiResult:
        return self._request("POST", "/auth/student/login", context, json={"email": email, "password": password})

    def admin_login(self, context: RequestContext, email: str, password: str) -> ApiResult:
        return self._request("POST", "/auth/admin/login", context, json={"email": email, "password": password})

    def student_register(self, context: RequestContext, payload: Mapping[str, Any]) -> ApiResult:
        return self._request("POST", "/auth/student/register", context, json=dict(payload))

    def get_profile(self, context: RequestContext) -> ApiResult:
        return self._request("GET", "/profile", context)

    # ------------------------------------------------------------------ qr
    def generate_qr(
        self,
        context: RequestContext,
        *,
        subject: str,
        teacher: str,
        location: str,
        duration: int,
    ) -> ApiResult:
        payload = {"subject": subject, "teacher": teacher, "location": location, "duration": duration}
        return self._request("POST", "/admin/qr/generate", context, json=payload)

    def scan_qr(self, context: RequestContext, *, qr_data: str, student_id: str, location: str) -> ApiResult:
        submission = ScanSubmission(qr_data=qr_data, student_id=student_id, location=location)
        return self._request("POST", "/student/qr/scan", context, json=submission.to_dict())

    def list_qr_sessions(self, context: RequestContext) -> ApiResult:
        return self._request("GET", "/admin/qr/sessions", context)

    # ---------------------------------------------------------- attendance
    def check_in(self, context: RequestContext, *, subject: str = "") -> ApiResult:
        return self._request("POST", "/student/checkin", context, json={"subject": subject})

    def check_out(self, context: RequestContext) -> ApiResult:
        return self._request("POST", "/student/checkout", context)

    def my_attendance(
        self,
        context: RequestContext,
        *,
        page: int = 1,
        limit: int = 10,
        month: Optional[str] = None,
    ) -> ApiResult:
        return self._request(
            "GET", "/student/attendance", context, params={"page": page, "limit": limit, "month": month}
        )

    def list_students(
        self,
        context: RequestContext,
        *,
        page: int = 1,
        limit: int = 10,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ApiResult:
        params = {"page": page, "limit": limit, "class": class_name, "grade": grade, "search": search}
        return self._request("GET", "/admin/students", context, params=params)

    def get_attendance_stats(
        self,
        context: RequestContext,
        *,
        student_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> ApiResult:
        params = {"student_id": student_id, "start_date": start_date, "end_date": end_date}
        return self._request("GET", "/admin/attendance/stats", context, params=params)
