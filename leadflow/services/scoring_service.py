"""Lead scoring service: persist heuristic scores and query score rankings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import case, select

from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models import Lead, LeadActivity, LeadScoreHistory, LeadUrgency
from leadflow.models.base import utcnow
from leadflow.scoring.heuristics import LeadScoreResult, LeadSignals, evaluate
from leadflow.services.base_service import BaseService

logger = logging.getLogger(__name__)

ACTIVITY_SAMPLE_SIZE = 50
HOT_THRESHOLD = 80
WARM_THRESHOLD = 60

_URGENCY_RANK = case(
    (Lead.urgency == LeadUrgency.URGENT, 4),
    (Lead.urgency == LeadUrgency.HIGH, 3),
    (Lead.urgency == LeadUrgency.NORMAL, 2),
    (Lead.urgency == LeadUrgency.LOW, 1),
    else_=0,
)


class ScoringService(BaseService):
    """Service for scoring leads and reading score-based rankings."""

    def _recent_activity_timestamps(self, lead_id: int) -> list[datetime]:
        stmt = (
            select(LeadActivity.created_at)
            .where(LeadActivity.lead_id == lead_id)
            .order_by(LeadActivity.created_at.desc())
            .limit(ACTIVITY_SAMPLE_SIZE)
        )
        return list(self.db.scalars(stmt))

    def _append_history(
        self,
        lead: Lead,
        score: int,
        urgency: LeadUrgency | None,
        factors: dict[str, Any] | None,
        reason: str | None,
        changed_by: str,
    ) -> None:
        self.db.add(
            LeadScoreHistory(
                lead_id=lead.id,
                score=score,
                urgency=urgency,
                factors=factors,
                reason=reason,
                changed_by=changed_by,
            )
        )

    def score(self, lead_id: int, now: datetime | None = None, changed_by: str = "system") -> LeadScoreResult:
        """Compute, persist, and return the score for one lead."""
        lead = self.db.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found")

        now = now or utcnow()
        signals = LeadSignals.from_lead(lead, self._recent_activity_timestamps(lead_id))
        result = evaluate(signals, now)

        lead.lead_score = result.score
        lead.lead_score_updated_at = now
        lead.urgency = result.urgency
        self._append_history(
            lead,
            result.score,
            result.urgency,
            result.factors.to_dict(),
            result.reason,
            changed_by,
        )
        self.commit()

        logger.info(
            "scoring.lead_scored",
            extra={
                "event": "scoring.lead_scored",
                "lead_id": lead_id,
                "score": result.score,
                "urgency": result.urgency.value,
            },
        )
        return result

    def recalculate_all(self, now: datetime | None = None) -> dict[str, int]:
        """Rescore every unconverted lead; one failure never aborts the batch."""
        lead_ids = list(self.db.scalars(select(Lead.id).where(Lead.converted_to_client.is_(False)).order_by(Lead.id)))
        successful = 0
        failed = 0
        for lead_id in lead_ids:
            try:
                self.score(lead_id, now=now)
                successful += 1
            except Exception:
                self.rollback()
                failed += 1
                logger.exception(
                    "scoring.lead_failed",
                    extra={"event": "scoring.lead_failed", "lead_id": lead_id},
                )

        summary = {"total": len(lead_ids), "successful": successful, "failed": failed}
        logger.info("scoring.recalculated", extra={"event": "scoring.recalculated", **summary})
        return summary

    def get_top_leads(self, limit: int = 10, preparer_id: int | None = None) -> list[Lead]:
        stmt = select(Lead).where(Lead.converted_to_client.is_(False), Lead.lead_score.is_not(None))
        if preparer_id is not None:
            stmt = stmt.where(Lead.assigned_to == preparer_id)
        stmt = stmt.order_by(Lead.lead_score.desc(), _URGENCY_RANK.desc(), Lead.created_at.desc()).limit(limit)
        return list(self.db.scalars(stmt))

    def get_score_distribution(self) -> dict[str, int]:
        scored = select(Lead.lead_score, Lead.urgency).where(
            Lead.converted_to_client.is_(False), Lead.lead_score.is_not(None)
        )
        distribution = {
            "total": 0,
            "hot": 0,
            "warm": 0,
            "cold": 0,
            "urgent": 0,
            "high": 0,
            "normal": 0,
            "low": 0,
        }
        for score, urgency in self.db.execute(scored):
            distribution["total"] += 1
            if score >= HOT_THRESHOLD:
                distribution["hot"] += 1
            elif score >= WARM_THRESHOLD:
                distribution["warm"] += 1
            else:
                distribution["cold"] += 1
            if urgency is not None:
                distribution[urgency.value.lower()] += 1
        return distribution

    def adjust_score(self, lead_id: int, new_score: int, reason: str, changed_by: str) -> Lead:
        """Manually override a lead's score; urgency is left as last computed."""
        if not 0 <= new_score <= 100:
            raise ValidationError("Score must be between 0 and 100")
        lead = self.db.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found")

        previous = lead.lead_score
        lead.lead_score = new_score
        lead.lead_score_updated_at = utcnow()
        self._append_history(lead, new_score, lead.urgency, None, reason, changed_by)
        self.commit()
        self.db.refresh(lead)

        logger.info(
            "scoring.score_adjusted",
            extra={
                "event": "scoring.score_adjusted",
                "lead_id": lead_id,
                "previous_score": previous,
                "score": new_score,
            },
        )
        return lead

    def get_score_history(self, lead_id: int, limit: int = 20) -> list[LeadScoreHistory]:
        stmt = (
            select(LeadScoreHistory)
            .where(LeadScoreHistory.lead_id == lead_id)
            .order_by(LeadScoreHistory.created_at.desc(), LeadScoreHistory.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def get_leads_by_score_range(self, min_score: int, max_score: int, limit: int = 100) -> list[Lead]:
        if min_score > max_score:
            raise ValidationError("min_score must not exceed max_score")
        stmt = (
            select(Lead)
            .where(Lead.lead_score.between(min_score, max_score))
            .order_by(Lead.lead_score.desc(), Lead.id)
            .limit(limit)
        )
        return list(self.db.scalars(stmt))
