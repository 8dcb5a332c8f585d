from __future__ import annotations

from datetime import timedelta

import pytest

from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models import Lead, LeadScoreHistory, LeadUrgency
from leadflow.services.scoring_service import ScoringService


def test_score_persists_score_urgency_and_history(session, make_lead):
    lead = make_lead(
        age=timedelta(minutes=20),
        phone="555-0100",
        source="referral",
        email_opens=1,
    )

    result = ScoringService(db=session).score(lead.id)

    refreshed = session.get(Lead, lead.id)
    assert refreshed.lead_score == result.score
    assert refreshed.lead_score_updated_at is not None
    assert refreshed.urgency == result.urgency
    history = session.query(LeadScoreHistory).filter_by(lead_id=lead.id).one()
    assert history.score == result.score
    assert history.factors["profile_completeness"] == 20
    assert history.changed_by == "system"


def test_score_unknown_lead_raises(session):
    with pytest.raises(NotFoundError):
        ScoringService(db=session).score(404)


def test_recalculate_all_skips_converted_and_isolates_failures(session, make_lead, monkeypatch):
    first = make_lead()
    broken = make_lead(email="broken@example.com")
    make_lead(email="client@example.com", converted_to_client=True)
    service = ScoringService(db=session)

    original_score = ScoringService.score

    def flaky_score(self, lead_id, now=None, changed_by="system"):
        if lead_id == broken.id:
            raise RuntimeError("boom")
        return original_score(self, lead_id, now=now, changed_by=changed_by)

    monkeypatch.setattr(ScoringService, "score", flaky_score)

    summary = service.recalculate_all()

    assert summary == {"total": 2, "successful": 1, "failed": 1}
    assert session.get(Lead, first.id).lead_score is not None


def test_top_leads_orders_by_score_then_urgency(session, make_lead, make_profile):
    preparer = make_profile()
    low = make_lead(email="a@example.com", lead_score=40, urgency=LeadUrgency.LOW, assigned_to=preparer.id)
    tied_high = make_lead(email="b@example.com", lead_score=75, urgency=LeadUrgency.HIGH, assigned_to=preparer.id)
    tied_normal = make_lead(email="c@example.com", lead_score=75, urgency=LeadUrgency.NORMAL)
    make_lead(email="d@example.com", lead_score=99, converted_to_client=True)
    make_lead(email="e@example.com")

    service = ScoringService(db=session)

    top = service.get_top_leads(limit=10)
    assert [lead.id for lead in top] == [tied_high.id, tied_normal.id, low.id]

    mine = service.get_top_leads(limit=10, preparer_id=preparer.id)
    assert [lead.id for lead in mine] == [tied_high.id, low.id]


def test_score_distribution_buckets(session, make_lead):
    make_lead(email="a@example.com", lead_score=85, urgency=LeadUrgency.URGENT)
    make_lead(email="b@example.com", lead_score=80, urgency=LeadUrgency.URGENT)
    make_lead(email="c@example.com", lead_score=60, urgency=LeadUrgency.HIGH)
    make_lead(email="d@example.com", lead_score=59, urgency=LeadUrgency.NORMAL)
    make_lead(email="e@example.com", lead_score=10, urgency=LeadUrgency.LOW)

    distribution = ScoringService(db=session).get_score_distribution()

    assert distribution["total"] == 5
    assert (distribution["hot"], distribution["warm"], distribution["cold"]) == (2, 1, 2)
    assert distribution["urgent"] == 2
    assert distribution["low"] == 1


def test_adjust_score_validates_range_and_records_history(session, make_lead):
    lead = make_lead()
    service = ScoringService(db=session)

    with pytest.raises(ValidationError):
        service.adjust_score(lead.id, 101, "typo", "pat")

    adjusted = service.adjust_score(lead.id, 90, "Referred by partner CPA", "pat")
    assert adjusted.lead_score == 90

    history = service.get_score_history(lead.id)
    assert len(history) == 1
    assert history[0].reason == "Referred by partner CPA"
    assert history[0].changed_by == "pat"


def test_leads_by_score_range(session, make_lead):
    make_lead(email="a@example.com", lead_score=30)
    mid = make_lead(email="b@example.com", lead_score=55)
    high = make_lead(email="c@example.com", lead_score=70)

    found = ScoringService(db=session).get_leads_by_score_range(50, 70)

    assert [lead.id for lead in found] == [high.id, mid.id]
