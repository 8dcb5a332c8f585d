"""Deterministic validators and sanitizers used across services."""

from __future__ import annotations

import re

TRACKING_CODE_PATTERN = re.compile(r"^[A-Za-z0-9._:\-]{1,120}$")


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def normalize_tracking_code(value: str | None) -> str | None:
    """Return a trimmed tracking code, or None when it is blank or malformed."""
    cleaned = sanitize_text(value, 120)
    if not cleaned or not TRACKING_CODE_PATTERN.match(cleaned):
        return None
    return cleaned
