from __future__ import annotations

import pytest

from leadflow.utils.validators import normalize_tracking_code, sanitize_text


def test_sanitize_text_strips_null_and_trims():
    assert sanitize_text("  hello\x00world  ") == "helloworld"
    assert sanitize_text(None) == ""
    assert sanitize_text("abcdef", max_len=3) == "abc"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  trk-001 ", "trk-001"),
        ("fb.spring:2025_a", "fb.spring:2025_a"),
        ("", None),
        (None, None),
        ("has space", None),
        ("x" * 121, "x" * 120),
    ],
)
def test_normalize_tracking_code(raw, expected):
    assert normalize_tracking_code(raw) == expected
