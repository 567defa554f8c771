from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from ..core.constants import GEOLOCATION_TIMEOUT_SECONDS


@dataclass(frozen=True)
class ClientConfig:
    api_url: str = "http://localhost:5000"
    socket_url: str = "http://localhost:5000"
    http_timeout: float = 10.0
    geolocation_timeout: float = GEOLOCATION_TIMEOUT_SECONDS
    platform: str = "web"

    # Socket.IO reconnection: bounded attempts with exponential backoff
    reconnection_attempts: int = 10
    reconnection_delay: float = 1.0
    reconnection_delay_max: float = 30.0

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv(override=False)
        api_url = os.getenv("SCHOOL_API_URL", cls.api_url).rstrip("/")
        return cls(
            api_url=api_url,
            socket_url=os.getenv("SCHOOL_SOCKET_URL", api_url).rstrip("/"),
            http_timeout=float(os.getenv("SCHOOL_HTTP_TIMEOUT", str(cls.http_timeout))),
            geolocation_timeout=float(os.getenv("SCHOOL_GEOLOCATION_TIMEOUT", str(cls.geolocation_timeout))),
            platform=os.getenv("SCHOOL_CLIENT_PLATFORM", cls.platform).lower(),
            reconnection_attempts=int(os.getenv("SCHOOL_RECONNECT_ATTEMPTS", str(cls.reconnection_attempts))),
            reconnection_delay=float(os.getenv("SCHOOL_RECONNECT_DELAY", str(cls.reconnection_delay))),
            reconnection_delay_max=float(os.getenv("SCHOOL_RECONNECT_DELAY_MAX", str(cls.reconnection_delay_max))),
        )
