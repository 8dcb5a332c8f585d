"""Lead scoring heuristics.

Pure functions over a lead snapshot. Five capped sub-scores are summed and
clamped to 0-100:

    profile completeness  0-25
    engagement            0-25
    source quality        0-20
    timing                0-15
    demographics          0-15

Nothing here touches the database; callers pass ``now`` explicitly so results
are reproducible.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable

from leadflow.models.base import as_utc
from leadflow.models.enums import LeadUrgency

PROFILE_CAP = 25.0
ENGAGEMENT_CAP = 25.0
DEMOGRAPHICS_CAP = 15.0
MAX_SCORE = 100

RECENT_ACTIVITY_WINDOW = timedelta(days=7)
FRESH_LEAD_HOURS = 2

# Checked in declaration order; the first key contained in the source wins.
SOURCE_SCORES: tuple[tuple[str, int], ...] = (
    ("referral", 20),
    ("website", 15),
    ("organic", 15),
    ("paid_search", 12),
    ("social", 10),
    ("email_campaign", 10),
    ("direct", 8),
    ("other", 5),
)
DEFAULT_SOURCE_SCORE = 5

FILING_STATUS_SCORES: dict[str, int] = {
    "married_filing_jointly": 5,
    "head_of_household": 4,
    "married_filing_separately": 4,
    "qualifying_widow": 4,
    "single": 3,
}

# (exclusive lower bound in hours, points)
TIMING_BANDS: tuple[tuple[float, int], ...] = ((1, 15), (24, 12), (72, 8), (168, 4))
STALE_LEAD_POINTS = 1

# (exclusive lower bound in dollars, points)
INCOME_BANDS: tuple[tuple[int, int], ...] = ((150_000, 10), (75_000, 7), (40_000, 4))
BASE_INCOME_POINTS = 2


@dataclass(frozen=True)
class LeadSignals:
    """Everything the scorer reads from a lead."""

    created_at: datetime
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    state: str | None = None
    filing_status: str | None = None
    source: str | None = None
    email_opens: int = 0
    email_clicks: int = 0
    estimated_income: int | None = None
    previous_year_agi: int | None = None
    activity_timestamps: tuple[datetime, ...] = field(default_factory=tuple)

    @classmethod
    def from_lead(cls, lead: Any, activity_timestamps: Iterable[datetime] = ()) -> "LeadSignals":
        return cls(
            created_at=as_utc(lead.created_at),
            first_name=lead.first_name,
            last_name=lead.last_name,
            email=lead.email,
            phone=lead.phone,
            state=lead.state,
            filing_status=lead.filing_status,
            source=lead.source,
            email_opens=lead.email_opens or 0,
            email_clicks=lead.email_clicks or 0,
            estimated_income=lead.estimated_income,
            previous_year_agi=lead.previous_year_agi,
            activity_timestamps=tuple(as_utc(ts) for ts in activity_timestamps),
        )


@dataclass(frozen=True)
class ScoreFactors:
    profile_completeness: float
    engagement: float
    source_quality: float
    timing: float
    demographics: float

    @property
    def total(self) -> float:
        return (
            self.profile_completeness
            + self.engagement
            + self.source_quality
            + self.timing
            + self.demographics
        )

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class LeadScoreResult:
    score: int
    factors: ScoreFactors
    urgency: LeadUrgency
    reason: str


def hours_since(created_at: datetime, now: datetime) -> float:
    return (as_utc(now) - as_utc(created_at)).total_seconds() / 3600


def profile_completeness(signals: LeadSignals) -> float:
    score = 0.0
    for value in (signals.first_name, signals.last_name, signals.email, signals.phone):
        if value:
            score += 5
    for value in (signals.state, signals.filing_status):
        if value:
            score += 2.5
    return min(score, PROFILE_CAP)


def engagement(signals: LeadSignals, now: datetime) -> float:
    score = 0.0
    if signals.email_opens > 0:
        score += min(signals.email_opens * 2, 10)
    if signals.email_clicks > 0:
        score += min(signals.email_clicks * 3, 10)

    cutoff = as_utc(now) - RECENT_ACTIVITY_WINDOW
    recent = sum(1 for ts in signals.activity_timestamps if ts >= cutoff)
    score += min(recent, 5)
    return min(score, ENGAGEMENT_CAP)


def source_quality(source: str | None) -> int:
    normalized = (source or "other").lower()
    for key, points in SOURCE_SCORES:
        if key in normalized:
            return points
    return DEFAULT_SOURCE_SCORE


def timing(signals: LeadSignals, now: datetime) -> int:
    elapsed = hours_since(signals.created_at, now)
    for bound, points in TIMING_BANDS:
        if elapsed < bound:
            return points
    return STALE_LEAD_POINTS


def _income_points(income: int) -> int:
    for bound, points in INCOME_BANDS:
        if income > bound:
            return points
    return BASE_INCOME_POINTS


def demographics(signals: LeadSignals) -> int:
    score = 0
    if signals.filing_status:
        key = signals.filing_status.strip().lower().replace(" ", "_")
        score += FILING_STATUS_SCORES.get(key, 0)

    income = signals.estimated_income or signals.previous_year_agi
    if income:
        score += _income_points(income)
    return min(score, int(DEMOGRAPHICS_CAP))


def compute_factors(signals: LeadSignals, now: datetime) -> ScoreFactors:
    return ScoreFactors(
        profile_completeness=profile_completeness(signals),
        engagement=engagement(signals, now),
        source_quality=source_quality(signals.source),
        timing=timing(signals, now),
        demographics=demographics(signals),
    )


def clamp_score(total: float) -> int:
    """Round half up, then clamp into 0-100."""
    rounded = int(math.floor(total + 0.5))
    return max(0, min(rounded, MAX_SCORE))


def determine_urgency(score: int, signals: LeadSignals, now: datetime) -> LeadUrgency:
    """Classify urgency; first matching rule wins.

    A very fresh lead that already engaged with an email is HIGH even when its
    score alone would only be NORMAL or LOW.
    """
    if score >= 80:
        return LeadUrgency.URGENT
    if score >= 60:
        return LeadUrgency.HIGH
    if hours_since(signals.created_at, now) < FRESH_LEAD_HOURS and (
        signals.email_opens > 0 or signals.email_clicks > 0
    ):
        return LeadUrgency.HIGH
    if score >= 40:
        return LeadUrgency.NORMAL
    return LeadUrgency.LOW


def score_reason(factors: ScoreFactors) -> str:
    reasons: list[str] = []

    if factors.profile_completeness >= 20:
        reasons.append("Complete profile")
    elif factors.profile_completeness < 10:
        reasons.append("Incomplete profile")

    if factors.engagement >= 15:
        reasons.append("Highly engaged")
    elif factors.engagement >= 8:
        reasons.append("Moderately engaged")
    else:
        reasons.append("Low engagement")

    if factors.source_quality >= 15:
        reasons.append("Quality source")
    if factors.timing >= 10:
        reasons.append("Recent lead")
    if factors.demographics >= 10:
        reasons.append("High-value potential")

    return ", ".join(reasons)


def evaluate(signals: LeadSignals, now: datetime) -> LeadScoreResult:
    """Score a lead snapshot."""
    factors = compute_factors(signals, now)
    score = clamp_score(factors.total)
    return LeadScoreResult(
        score=score,
        factors=factors,
        urgency=determine_urgency(score, signals, now),
        reason=score_reason(factors),
    )
