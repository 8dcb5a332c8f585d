from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from leadflow.models import LeadUrgency
from leadflow.scoring.heuristics import (
    LeadSignals,
    clamp_score,
    demographics,
    determine_urgency,
    engagement,
    evaluate,
    profile_completeness,
    score_reason,
    source_quality,
    timing,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _signals(age: timedelta = timedelta(days=30), **fields) -> LeadSignals:
    return LeadSignals(created_at=NOW - age, **fields)


def test_score_is_bounded_for_empty_and_maximal_leads():
    empty = evaluate(_signals(age=timedelta(days=400)), NOW)
    assert 0 <= empty.score <= 100

    maximal = evaluate(
        _signals(
            age=timedelta(seconds=0),
            first_name="Ada",
            last_name="King",
            email="ada@example.com",
            phone="555-0100",
            state="NY",
            filing_status="married_filing_jointly",
            source="referral",
            email_opens=9,
            email_clicks=9,
            estimated_income=250_000,
            activity_timestamps=tuple(NOW - timedelta(hours=h) for h in range(10)),
        ),
        NOW,
    )
    assert maximal.score == 100
    assert maximal.urgency == LeadUrgency.URGENT


def test_every_completeness_field_gives_full_profile_subscore():
    signals = _signals(
        first_name="Ada",
        last_name="King",
        email="ada@example.com",
        phone="555-0100",
        state="NY",
        filing_status="single",
    )
    assert profile_completeness(signals) == 25
    assert evaluate(signals, NOW).factors.profile_completeness == 25


def test_fresh_lead_with_one_open_scores_at_least_the_baseline():
    signals = _signals(
        age=timedelta(seconds=0),
        first_name="Ada",
        last_name="King",
        email="ada@example.com",
        email_opens=1,
    )
    result = evaluate(signals, NOW)

    profile_base = profile_completeness(signals)
    source_base = source_quality(None)
    assert result.score >= profile_base + 2 + source_base + 15
    assert result.urgency == LeadUrgency.HIGH


def test_fresh_engaged_lead_overrides_mid_score_urgency():
    signals = _signals(
        age=timedelta(minutes=30),
        first_name="Ada",
        last_name="King",
        email_clicks=1,
        estimated_income=30_000,
    )
    result = evaluate(signals, NOW)

    assert result.score == 35
    assert result.urgency == LeadUrgency.HIGH


def test_urgency_falls_through_to_score_bands_without_engagement():
    stale = _signals(age=timedelta(minutes=30))
    assert determine_urgency(35, stale, NOW) == LeadUrgency.LOW
    assert determine_urgency(45, stale, NOW) == LeadUrgency.NORMAL
    assert determine_urgency(65, stale, NOW) == LeadUrgency.HIGH
    assert determine_urgency(80, stale, NOW) == LeadUrgency.URGENT


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("Referral Partner", 20),
        ("website_referral", 20),
        ("organic_search", 15),
        ("paid_search", 12),
        ("facebook_social", 10),
        ("direct", 8),
        ("billboard", 5),
        (None, 5),
    ],
)
def test_source_quality_uses_first_matching_key(source, expected):
    assert source_quality(source) == expected


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (timedelta(minutes=30), 15),
        (timedelta(hours=2), 12),
        (timedelta(hours=30), 8),
        (timedelta(hours=100), 4),
        (timedelta(hours=200), 1),
    ],
)
def test_timing_bands(age, expected):
    assert timing(_signals(age=age), NOW) == expected


def test_engagement_window_includes_activity_exactly_seven_days_old():
    signals = _signals(
        activity_timestamps=(
            NOW - timedelta(days=7),
            NOW - timedelta(days=7, seconds=1),
            NOW - timedelta(days=1),
        )
    )
    assert engagement(signals, NOW) == 2


def test_clamp_score_rounds_half_up_and_clamps():
    assert clamp_score(62.5) == 63
    assert clamp_score(62.4) == 62
    assert clamp_score(130) == 100
    assert clamp_score(-4) == 0


def test_reason_reflects_sub_scores():
    result = evaluate(
        _signals(
            age=timedelta(minutes=10),
            first_name="Ada",
            last_name="King",
            email="ada@example.com",
            phone="555-0100",
            source="referral",
        ),
        NOW,
    )
    reason = score_reason(result.factors)
    assert "Complete profile" in reason
    assert "Quality source" in reason
    assert "Recent lead" in reason
    assert "Low engagement" in reason


@pytest.mark.parametrize(
    ("income", "points"),
    [
        (40_000, 2),
        (40_001, 4),
        (75_000, 4),
        (75_001, 7),
        (150_000, 7),
        (150_001, 10),
    ],
)
def test_demographics_income_bands_use_exclusive_bounds(income, points):
    assert demographics(_signals(estimated_income=income)) == points


@pytest.mark.parametrize(
    ("filing_status", "points"),
    [
        ("married_filing_jointly", 5),
        ("Married Filing Jointly", 5),
        ("head_of_household", 4),
        ("married_filing_separately", 4),
        ("qualifying_widow", 4),
        ("single", 3),
        ("unknown", 0),
    ],
)
def test_demographics_filing_status_table(filing_status, points):
    assert demographics(_signals(filing_status=filing_status)) == points


def test_demographics_falls_back_to_prior_agi_and_caps_at_15():
    assert demographics(_signals(previous_year_agi=80_000)) == 7
    assert demographics(_signals(filing_status="married_filing_jointly", estimated_income=500_000)) == 15


@pytest.mark.parametrize(
    ("opens", "clicks", "points"),
    [
        (1, 0, 2),
        (5, 0, 10),
        (6, 0, 10),
        (0, 3, 9),
        (0, 4, 10),
        (40, 40, 20),
    ],
)
def test_engagement_open_and_click_caps(opens, clicks, points):
    assert engagement(_signals(email_opens=opens, email_clicks=clicks), NOW) == points


def test_engagement_total_is_capped():
    recent = tuple(NOW - timedelta(hours=hour) for hour in range(1, 9))

    assert engagement(_signals(email_opens=9, email_clicks=9, activity_timestamps=recent), NOW) == 25
