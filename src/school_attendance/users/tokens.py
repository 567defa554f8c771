from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.constants import TOKEN_TTL_HOURS
from ..core.enums import UserType
from ..core.exceptions import AuthenticationError

JWT_ALGO = "HS256"


@dataclass(frozen=True)
class Claims:
    user_id: int
    user_type: UserType


class TokenService:
    """Issue and verify the HS256 bearer tokens sent in ``Authorization``."""

    def __init__(self, secret: str, *, ttl_hours: int = TOKEN_TTL_HOURS):
        self._secret = secret
        self._ttl = timedelta(hours=int(ttl_hours))

    def issue(self, user_id: int, user_type: UserType, *, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "user_id": int(user_id),
            "user_type": user_type.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGO)

    def verify(self, token: str) -> Claims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGO])
            return Claims(user_id=int(payload["user_id"]), user_type=UserType(payload["user_type"]))
        except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
            raise AuthenticationError("Invalid token")
