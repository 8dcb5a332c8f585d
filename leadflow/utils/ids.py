"""Identifier generation helpers."""

from __future__ import annotations

import uuid


def new_trace_id() -> str:
    """Create a hex trace identifier for task and automation logs."""
    return uuid.uuid4().hex


def new_email_id() -> str:
    """Create an identifier for messages sent without a provider id."""
    return f"email-{uuid.uuid4().hex}"
