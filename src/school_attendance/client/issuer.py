from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import to_unix_seconds
from ..core.constants import ALLOWED_SESSION_DURATIONS, DEFAULT_SESSION_MINUTES
from ..qr.token import SessionToken, render_png
from .api import ApiClient, RequestContext

logger = logging.getLogger(__name__)

CREATION_FAILED = "QR code creation failed"


class IssueFailed(Exception):
    """Session creation did not succeed; ``message`` is safe to show the admin."""

    def __init__(self, message: str = CREATION_FAILED):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class IssuedSession:
    session_code: str
    qr_code: str
    expires_at: datetime
    subject: str
    teacher: str
    location: str
    token: SessionToken

    def render_png(self, *, box_size: int = 8) -> bytes:
        return render_png(self.token.to_json(), box_size=box_size)


class SessionIssuer:
    def __init__(self, api: ApiClient):
        self._api = api

    def issue(
        self,
        context: RequestContext,
        *,
        subject: str,
        teacher: str,
        location: str,
        duration_minutes: int = DEFAULT_SESSION_MINUTES,
    ) -> IssuedSession:
        for name, value in (("subject", subject), ("teacher", teacher), ("location", location)):
            if not value or not value.strip():
                raise IssueFailed(f"{name} is required")
        if duration_minutes not in ALLOWED_SESSION_DURATIONS:
            raise IssueFailed(f"duration must be one of {ALLOWED_SESSION_DURATIONS}")

        result = self._api.generate_qr(
            context,
            subject=subject.strip(),
            teacher=teacher.strip(),
            location=location.strip(),
            duration=duration_minutes,
        )
        if not result.ok:
            logger.warning("QR session creation failed: %r", result)
            raise IssueFailed()

        data = result.data
        try:
            expires_at = datetime.fromisoformat(str(data["expires_at"]).replace("Z", "+00:00"))
            # without an offset the instant depends on this machine's timezone
            if expires_at.tzinfo is None:
                raise ValueError("expires_at has no UTC offset")
            token = SessionToken(
                session_code=str(data["session_code"]),
                subject=str(data.get("subject", subject)),
                teacher=str(data.get("teacher", teacher)),
                location=str(data.get("location", location)),
                expires_at=to_unix_seconds(expires_at),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Unexpected QR session response: %r", data)
            raise IssueFailed()

        return IssuedSession(
            session_code=token.session_code,
            qr_code=str(data.get("qr_code") or ""),
            expires_at=expires_at,
            subject=token.subject,
            teacher=token.teacher,
            location=token.location,
            token=token,
        )
