"""QR session token codec.

The token is the flat JSON object encoded into the attendance QR image::

    {"session_code": "...", "subject": "...", "teacher": "...",
     "location": "...", "expires_at": 1767225600}

``expires_at`` is Unix seconds. There is no version field and no signature,
so the structural and expiry checks here are not a security boundary; the
backend re-validates every submission against its own session state.
"""
from __future__ import annotations

import base64
import io
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import qrcode
from PIL import Image


class TokenFormatError(ValueError):
    """Raised when scanned text is not a structurally valid session token."""


@dataclass(frozen=True)
class SessionToken:
    session_code: str
    subject: str
    teacher: str
    location: str
    expires_at: float

    @property
    def expires_at_ms(self) -> float:
        return self.expires_at * 1000

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return now.timestamp() * 1000 > self.expires_at_ms

    def to_payload(self) -> dict[str, Any]:
        expires_at = int(self.expires_at) if float(self.expires_at).is_integer() else self.expires_at
        return {
            "session_code": self.session_code,
            "subject": self.subject,
            "teacher": self.teacher,
            "location": self.location,
            "expires_at": expires_at,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), separators=(",", ":"))


def _coerce_expiry(value: Any) -> float:
    if isinstance(value, bool):
        raise TokenFormatError("Invalid expiration time in QR data")
    if isinstance(value, (int, float)):
        return float(value)
    raise TokenFormatError("Invalid expiration time in QR data")


def parse_token(raw: str) -> SessionToken:
    """Parse scanned text into a token, failing fast on structural problems."""

    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise TokenFormatError("QR code is not valid JSON")

    if not isinstance(data, dict):
        raise TokenFormatError("QR code is not a session token")

    session_code = data.get("session_code")
    expires_at = data.get("expires_at")
    if not session_code or not expires_at:
        raise TokenFormatError("QR code is missing session_code or expires_at")
    if not isinstance(session_code, str):
        raise TokenFormatError("Invalid session code in QR data")

    return SessionToken(
        session_code=session_code,
        subject=str(data.get("subject") or ""),
        teacher=str(data.get("teacher") or ""),
        location=str(data.get("location") or ""),
        expires_at=_coerce_expiry(expires_at),
    )


def render_png(text: str, *, box_size: int = 8, border: int = 4) -> bytes:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_png_base64(text: str) -> str:
    return base64.b64encode(render_png(text)).decode("utf-8")


def decode_image(image: Image.Image) -> list[str]:
    """Return every QR/barcode text found in an image (may be empty)."""

    # pyzbar loads the native zbar library on import
    from pyzbar.pyzbar import decode as pyzbar_decode

    results = pyzbar_decode(image)
    return [r.data.decode("utf-8", errors="replace") for r in results]


def decode_png(data: bytes) -> list[str]:
    with Image.open(io.BytesIO(data)) as img:
        return decode_image(img.convert("RGB"))
