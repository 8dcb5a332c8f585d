from __future__ import annotations

from leadflow.models import LeadStatus
from leadflow.orchestration.conditions import conditions_match, lead_snapshot


def test_snapshot_normalizes_enums(session, make_lead):
    lead = make_lead(status=LeadStatus.CONTACTED, state="TX")

    snapshot = lead_snapshot(lead)

    assert snapshot["status"] == "CONTACTED"
    assert snapshot["state"] == "TX"
    assert "activities" not in snapshot


def test_empty_conditions_always_match():
    assert conditions_match(None, {}) is True
    assert conditions_match({}, {"status": "NEW"}) is True


def test_every_key_must_match():
    snapshot = {"status": "NEW", "source": "referral"}

    assert conditions_match({"status": "NEW"}, snapshot) is True
    assert conditions_match({"status": LeadStatus.NEW}, snapshot) is True
    assert conditions_match({"status": "NEW", "source": "website"}, snapshot) is False


def test_missing_key_is_a_mismatch():
    assert conditions_match({"nonexistent": None}, {"status": "NEW"}) is False
