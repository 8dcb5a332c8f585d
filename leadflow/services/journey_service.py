"""Journey stage tracking for attributed marketing-link clicks.

A click moves through four stages, strictly in order and at most once each:

    CLICKED -> INTAKE_STARTED -> INTAKE_COMPLETED -> RETURN_FILED

Each stage is a nullable timestamp on the click row. Advancing a stage is a
compare-and-swap UPDATE (the target column must still be NULL and the previous
one set) committed in the same transaction as the owning link's counter
increment and conversion-rate recompute, so two concurrent ``track`` calls for
one click can never both apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, select, update

from leadflow.core.exceptions import NotFoundError, StageViolationError, ValidationError
from leadflow.models import JourneyStage, LinkClick, MarketingLink
from leadflow.models.base import utcnow
from leadflow.schemas.journey import UTMAttribution
from leadflow.services.base_service import BaseService
from leadflow.utils.validators import normalize_tracking_code, sanitize_text

logger = logging.getLogger(__name__)

# stage -> (column that must already be set, column this stage stamps)
STAGE_COLUMNS: dict[JourneyStage, tuple[str, str]] = {
    JourneyStage.INTAKE_STARTED: ("clicked_at", "intake_started_at"),
    JourneyStage.INTAKE_COMPLETED: ("intake_started_at", "intake_completed_at"),
    JourneyStage.RETURN_FILED: ("intake_completed_at", "tax_return_completed_at"),
}

STAGE_COUNTERS: dict[JourneyStage, tuple[str, ...]] = {
    JourneyStage.INTAKE_STARTED: ("intake_starts",),
    JourneyStage.INTAKE_COMPLETED: ("intake_completes", "conversions"),
    JourneyStage.RETURN_FILED: ("returns_filed", "returns"),
}

_PREREQUISITE_MESSAGES: dict[JourneyStage, str] = {
    JourneyStage.INTAKE_STARTED: "Cannot start intake without clicking link first",
    JourneyStage.INTAKE_COMPLETED: "Cannot complete intake without starting it first",
    JourneyStage.RETURN_FILED: "Cannot file return without completing intake first",
}

_REPEAT_MESSAGES: dict[JourneyStage, str] = {
    JourneyStage.INTAKE_STARTED: "Intake already started",
    JourneyStage.INTAKE_COMPLETED: "Intake already completed",
    JourneyStage.RETURN_FILED: "Return already filed",
}


@dataclass(frozen=True)
class JourneyAttribution:
    material_id: int
    material_type: str
    creator_id: int | None


@dataclass(frozen=True)
class JourneyStageResult:
    success: bool
    journey_stage: JourneyStage
    link_click: LinkClick
    attribution: JourneyAttribution | None = None


def validate_stage_progression(click: LinkClick, stage: JourneyStage) -> str | None:
    """Return a human-readable reason the transition is illegal, or None."""
    if stage == JourneyStage.CLICKED:
        return None
    previous_column, stage_column = STAGE_COLUMNS[stage]
    if getattr(click, previous_column) is None:
        return _PREREQUISITE_MESSAGES[stage]
    if getattr(click, stage_column) is not None:
        return _REPEAT_MESSAGES[stage]
    return None


def current_stage(click: LinkClick) -> JourneyStage:
    """Furthest stage the click has reached."""
    reached = JourneyStage.CLICKED
    for stage, (_, column) in STAGE_COLUMNS.items():
        if getattr(click, column) is None:
            break
        reached = stage
    return reached


def _rate(counter):
    return case(
        (MarketingLink.clicks > 0, counter * 100.0 / MarketingLink.clicks),
        else_=0.0,
    )


def _coerce_stage(stage: JourneyStage | str) -> JourneyStage:
    try:
        return JourneyStage(stage)
    except ValueError as exc:
        raise ValidationError(f"Invalid stage: {stage}") from exc


class JourneyService(BaseService):
    """Service for click creation and journey stage progression."""

    def create_click(
        self,
        link_id: int,
        ip_address: str | None = None,
        user_agent: str | None = None,
        referrer: str | None = None,
        attribution: UTMAttribution | dict[str, Any] | None = None,
    ) -> LinkClick:
        if self.db.get(MarketingLink, link_id) is None:
            raise NotFoundError(f"Marketing link {link_id} not found")

        if isinstance(attribution, dict):
            attribution = UTMAttribution.model_validate(attribution)

        tracking_code = None
        if attribution is not None:
            tracking_code = normalize_tracking_code(attribution.tracking_code)
            if tracking_code is None:
                raise ValidationError(f"Malformed tracking code: {attribution.tracking_code!r}")

        click = LinkClick(
            link_id=link_id,
            tracking_code=tracking_code,
            ip_address=ip_address,
            user_agent=sanitize_text(user_agent, 512) or None,
            referrer=sanitize_text(referrer, 2048) or None,
            utm_source=attribution.source if attribution else None,
            utm_medium=attribution.medium if attribution else None,
            utm_campaign=attribution.campaign if attribution else None,
            utm_content=attribution.content if attribution else None,
            utm_term=attribution.term if attribution else None,
            clicked_at=utcnow(),
        )
        self.db.add(click)
        self.db.flush()
        self._increment_link_counters(link_id, ("clicks",))
        self.commit()
        self.db.refresh(click)

        logger.info(
            "journey.click_created",
            extra={
                "event": "journey.click_created",
                "link_id": link_id,
                "click_id": click.id,
                "tracking_code": tracking_code,
            },
        )
        return click

    def find_click(self, tracking_code: str) -> LinkClick | None:
        """Most recent click carrying the tracking code."""
        code = normalize_tracking_code(tracking_code)
        if code is None:
            return None
        stmt = (
            select(LinkClick)
            .where(LinkClick.tracking_code == code)
            .order_by(LinkClick.clicked_at.desc(), LinkClick.id.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def track(
        self,
        tracking_code: str,
        stage: JourneyStage | str,
        actor_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> JourneyStageResult:
        stage = _coerce_stage(stage)
        click = self.find_click(tracking_code)
        if click is None:
            raise NotFoundError(f"Link click not found for tracking code {tracking_code!r}")

        reason = validate_stage_progression(click, stage)
        if reason is not None:
            self._raise_violation(click, stage, reason)

        if stage != JourneyStage.CLICKED:
            self._advance(click, stage, actor_id)

        link = self.db.get(MarketingLink, click.link_id)
        logger.info(
            "journey.stage_tracked",
            extra={
                "event": "journey.stage_tracked",
                "tracking_code": tracking_code,
                "stage": stage.value,
                "click_id": click.id,
                "link_id": click.link_id,
                "metadata": metadata or {},
            },
        )
        return JourneyStageResult(
            success=True,
            journey_stage=stage,
            link_click=click,
            attribution=JourneyAttribution(
                material_id=link.id,
                material_type=link.link_type,
                creator_id=link.creator_id,
            )
            if link is not None
            else None,
        )

    def _advance(self, click: LinkClick, stage: JourneyStage, actor_id: int | None) -> None:
        click_id = click.id
        link_id = click.link_id
        previous_column, stage_column = STAGE_COLUMNS[stage]

        values: dict[str, Any] = {stage_column: utcnow()}
        if stage == JourneyStage.INTAKE_COMPLETED:
            values["converted"] = True
            if actor_id is not None:
                values["client_id"] = actor_id

        stmt = (
            update(LinkClick)
            .where(
                LinkClick.id == click_id,
                getattr(LinkClick, previous_column).is_not(None),
                getattr(LinkClick, stage_column).is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            # Lost the race to another writer; re-read to explain why.
            self.rollback()
            fresh = self.db.get(LinkClick, click_id)
            reason = validate_stage_progression(fresh, stage) or "Concurrent stage update detected"
            self._raise_violation(fresh, stage, reason)

        self._increment_link_counters(link_id, STAGE_COUNTERS[stage])
        self.commit()
        self.db.refresh(click)

    def _increment_link_counters(self, link_id: int, counters: tuple[str, ...]) -> None:
        increments = {name: getattr(MarketingLink, name) + 1 for name in counters}
        self.db.execute(
            update(MarketingLink)
            .where(MarketingLink.id == link_id)
            .values(**increments)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            update(MarketingLink)
            .where(MarketingLink.id == link_id)
            .values(
                intake_conversion_rate=_rate(MarketingLink.intake_starts),
                complete_conversion_rate=_rate(MarketingLink.intake_completes),
                filed_conversion_rate=_rate(MarketingLink.returns_filed),
            )
            .execution_options(synchronize_session=False)
        )
        link = self.db.get(MarketingLink, link_id)
        if link is not None:
            self.db.expire(link)

    def _raise_violation(self, click: LinkClick, stage: JourneyStage, reason: str) -> None:
        logger.info(
            "journey.stage_violation",
            extra={
                "event": "journey.stage_violation",
                "click_id": click.id if click is not None else None,
                "stage": stage.value,
                "reason": reason,
            },
        )
        raise StageViolationError(stage.value, reason)

    def get_status(self, tracking_code: str) -> dict[str, Any] | None:
        click = self.find_click(tracking_code)
        if click is None:
            return None

        return {
            "found": True,
            "current_stage": current_stage(click).value,
            "stages": {
                "clicked": True,
                "clicked_at": click.clicked_at,
                "intake_started": click.intake_started_at is not None,
                "intake_started_at": click.intake_started_at,
                "intake_completed": click.intake_completed_at is not None,
                "intake_completed_at": click.intake_completed_at,
                "return_filed": click.tax_return_completed_at is not None,
                "return_filed_at": click.tax_return_completed_at,
            },
        }
