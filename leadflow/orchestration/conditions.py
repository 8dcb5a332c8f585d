"""Flat field-equality conditions evaluated against a lead snapshot."""

from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import inspect

from leadflow.models import Lead

_MISSING = object()


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value


def lead_snapshot(lead: Lead) -> dict[str, Any]:
    """Column values of a lead keyed by attribute name, enums as their values."""
    return {attr.key: _plain(getattr(lead, attr.key)) for attr in inspect(Lead).column_attrs}


def conditions_match(conditions: dict[str, Any] | None, snapshot: dict[str, Any]) -> bool:
    """True when every condition key equals the snapshot value.

    Empty or missing conditions always match; an unknown key never does.
    """
    if not conditions:
        return True
    for key, expected in conditions.items():
        actual = snapshot.get(key, _MISSING)
        if actual is _MISSING or actual != _plain(expected):
            return False
    return True
