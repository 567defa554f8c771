from __future__ import annotations

import threading

from school_attendance.client.location import (
    ACCESS_DENIED,
    MOBILE_FALLBACK,
    NOT_SUPPORTED,
    format_coordinates,
    resolve_location,
)


def test_no_locator_uses_platform_sentinel():
    assert resolve_location(None) == NOT_SUPPORTED
    assert resolve_location(None, platform="mobile") == MOBILE_FALLBACK


def test_coordinates_are_formatted_with_six_decimals():
    assert resolve_location(lambda: (10.5, -20.123456789)) == "10.500000, -20.123457"
    assert format_coordinates(0, 0) == "0.000000, 0.000000"


def test_failing_locator_resolves_to_denied():
    def denied():
        raise PermissionError("user said no")

    assert resolve_location(denied) == ACCESS_DENIED


def test_slow_locator_times_out_to_denied():
    release = threading.Event()

    def hang():
        release.wait(5)
        return (1.0, 2.0)

    try:
        assert resolve_location(hang, timeout=0.05) == ACCESS_DENIED
    finally:
        release.set()
