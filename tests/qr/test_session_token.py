from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from school_attendance.qr.token import SessionToken, TokenFormatError, decode_png, parse_token, render_png


def _raw(**overrides):
    data = {"session_code": "S1", "subject": "Math", "teacher": "Ms. X", "location": "Room 1", "expires_at": 1790000000}
    data.update(overrides)
    return json.dumps(data)


def test_parse_token_reads_flat_payload():
    token = parse_token(_raw())

    assert token == SessionToken("S1", "Math", "Ms. X", "Room 1", 1790000000.0)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"expires_at": 1790000000}),
        json.dumps({"session_code": "S1"}),
        json.dumps({"session_code": "", "expires_at": 1790000000}),
        json.dumps({"session_code": "S1", "expires_at": 0}),
        json.dumps({"session_code": "S1", "expires_at": "soon"}),
        json.dumps({"session_code": "S1", "expires_at": "1790000000"}),
        json.dumps({"session_code": "S1", "expires_at": True}),
    ],
)
def test_parse_token_rejects_structurally_invalid_text(raw):
    with pytest.raises(TokenFormatError):
        parse_token(raw)


def test_optional_fields_default_to_empty():
    token = parse_token(json.dumps({"session_code": "S1", "expires_at": 1790000000}))

    assert (token.subject, token.teacher, token.location) == ("", "", "")


def test_is_expired_compares_milliseconds():
    now = datetime(2026, 10, 19, 9, 30, 0)
    past = SessionToken("S1", "Math", "Ms. X", "Room 1", (now - timedelta(seconds=10)).timestamp())
    future = SessionToken("S1", "Math", "Ms. X", "Room 1", (now + timedelta(seconds=600)).timestamp())
    exact = SessionToken("S1", "Math", "Ms. X", "Room 1", now.timestamp())

    assert past.is_expired(now)
    assert not future.is_expired(now)
    assert not exact.is_expired(now)


def test_to_json_is_compact_and_keeps_whole_seconds():
    token = SessionToken("S1", "Math", "Ms. X", "Room 1", 1790000000.0)

    assert token.to_json() == (
        '{"session_code":"S1","subject":"Math","teacher":"Ms. X","location":"Room 1","expires_at":1790000000}'
    )
    assert parse_token(token.to_json()) == token


def test_render_png_produces_png_bytes():
    assert render_png(_raw()).startswith(b"\x89PNG")


def test_rendered_qr_decodes_back_to_the_same_text():
    pytest.importorskip("pyzbar.pyzbar")
    raw = _raw()

    assert decode_png(render_png(raw)) == [raw]
