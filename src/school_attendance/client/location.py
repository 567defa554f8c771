from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional

from ..core.constants import GEOLOCATION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

NOT_SUPPORTED = "Geolocation not supported"
ACCESS_DENIED = "Location access denied"
MOBILE_FALLBACK = "Mobile App"

Locator = Callable[[], "tuple[float, float]"]


def format_coordinates(latitude: float, longitude: float) -> str:
    return f"{latitude:.6f}, {longitude:.6f}"


def resolve_location(
    locator: Optional[Locator] = None,
    *,
    platform: str = "web",
    timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
) -> str:
    """Best-effort location string for a scan submission. Never raises.

    A locator that fails or does not answer within ``timeout`` seconds
    resolves to the access-denied sentinel.
    """

    if locator is None:
        return MOBILE_FALLBACK if platform == "mobile" else NOT_SUPPORTED

    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="geolocation")
    try:
        latitude, longitude = pool.submit(locator).result(timeout=timeout)
        return format_coordinates(float(latitude), float(longitude))
    except FutureTimeout:
        logger.info("Geolocation timed out after %.1fs", timeout)
        return ACCESS_DENIED
    except Exception as e:
        logger.info("Geolocation failed: %s", e)
        return ACCESS_DENIED
    finally:
        # a hung locator must not block the scan
        pool.shutdown(wait=False)
