"""Single-shot QR scanning state machine used by the student apps.

    IDLE --start--> SCANNING --valid decode--> SUBMITTING --> RESULT --acknowledge--> IDLE
                      |  ^                                      ^
                      |  +-- decode error (logged, keeps going) |
                      +-- invalid / expired token --------------+
    SCANNING --cancel--> IDLE

Structurally invalid and expired tokens are rejected locally with no
network call. Everything else is submitted exactly once; the server then
does the authoritative validation.
"""
from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from PIL import Image

from ..core.constants import GEOLOCATION_TIMEOUT_SECONDS
from ..qr.token import SessionToken, TokenFormatError, decode_image, parse_token
from .api import ApiClient, RequestContext
from .config import ClientConfig
from .location import Locator, resolve_location

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid QR code"
EXPIRED_TOKEN = "QR code has expired"
SCAN_FAILED = "Failed to process QR code"


class ScanState(str, enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SUBMITTING = "submitting"
    RESULT = "result"


class ScanOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    REJECTED_INVALID = "rejected_invalid"
    REJECTED_EXPIRED = "rejected_expired"


@dataclass(frozen=True)
class ScanResult:
    outcome: ScanOutcome
    message: str
    subject: str = ""
    teacher: str = ""
    data: Any = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is ScanOutcome.SUCCESS


def success_message(server_message: str, token: SessionToken) -> str:
    return f"Attendance recorded! {server_message}\nSubject: {token.subject}\nTeacher: {token.teacher}"


class ScanSession:
    def __init__(
        self,
        api: ApiClient,
        context: RequestContext,
        student_id: str,
        *,
        locator: Optional[Locator] = None,
        platform: str = "web",
        geolocation_timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
        on_result: Optional[Callable[[ScanResult], None]] = None,
    ):
        self._api = api
        self._context = context
        self._student_id = student_id
        self._locator = locator
        self._platform = platform
        self._geolocation_timeout = geolocation_timeout
        self._clock = clock
        self._on_result = on_result

        self._lock = threading.Lock()
        self.state = ScanState.IDLE
        self.result: Optional[ScanResult] = None

    @classmethod
    def from_config(
        cls,
        api: ApiClient,
        context: RequestContext,
        student_id: str,
        config: ClientConfig,
        **kwargs: Any,
    ) -> "ScanSession":
        return cls(
            api,
            context,
            student_id,
            platform=config.platform,
            geolocation_timeout=config.geolocation_timeout,
            **kwargs,
        )

    def start(self) -> None:
        with self._lock:
            if self.state is ScanState.IDLE:
                self.state = ScanState.SCANNING
                self.result = None

    def cancel(self) -> None:
        with self._lock:
            if self.state is ScanState.SCANNING:
                self.state = ScanState.IDLE

    def acknowledge(self) -> None:
        with self._lock:
            if self.state is ScanState.RESULT:
                self.state = ScanState.IDLE

    def on_decode_error(self, message: str) -> None:
        # per-frame decoder noise, the scan loop keeps running
        logger.debug("QR decode error: %s", message)

    def scan_frame(self, image: Image.Image) -> Optional[ScanResult]:
        if self.state is not ScanState.SCANNING:
            return None
        texts = decode_image(image)
        if not texts:
            self.on_decode_error("no QR code found in frame")
            return None
        return self.on_decode(texts[0])

    def on_decode(self, raw: str) -> Optional[ScanResult]:
        """Handle one decoded text. Ignored unless the session is scanning."""

        with self._lock:
            if self.state is not ScanState.SCANNING:
                return None
            self.state = ScanState.SUBMITTING

        try:
            token = parse_token(raw)
        except TokenFormatError as e:
            logger.info("Rejected QR code: %s", e)
            return self._finish(ScanResult(ScanOutcome.REJECTED_INVALID, INVALID_TOKEN))

        if token.is_expired(self._clock()):
            return self._finish(
                ScanResult(ScanOutcome.REJECTED_EXPIRED, EXPIRED_TOKEN, token.subject, token.teacher)
            )

        location = resolve_location(self._locator, platform=self._platform, timeout=self._geolocation_timeout)
        result = self._api.scan_qr(self._context, qr_data=raw, student_id=self._student_id, location=location)

        if result.ok:
            data = result.data if isinstance(result.data, dict) else {}
            message = success_message(str(data.get("message") or ""), token)
            return self._finish(ScanResult(ScanOutcome.SUCCESS, message, token.subject, token.teacher, data))

        return self._finish(
            ScanResult(ScanOutcome.FAILED, result.error_message(SCAN_FAILED), token.subject, token.teacher)
        )

    def _finish(self, result: ScanResult) -> ScanResult:
        with self._lock:
            self.state = ScanState.RESULT
            self.result = result
        if self._on_result is not None:
            self._on_result(result)
        return result
