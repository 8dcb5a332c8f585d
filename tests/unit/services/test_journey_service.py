from __future__ import annotations

import pytest
from sqlalchemy import update

from leadflow.core.exceptions import NotFoundError, StageViolationError, ValidationError
from leadflow.models import JourneyStage, LinkClick, MarketingLink
from leadflow.models.base import utcnow
from leadflow.schemas.journey import UTMAttribution
from leadflow.services.journey_service import JourneyService, current_stage


def _link_state(session, link_id: int) -> MarketingLink:
    link = session.get(MarketingLink, link_id)
    session.refresh(link)
    return link


def test_create_click_stores_attribution_and_counts_click(session, make_link):
    link = make_link()
    service = JourneyService(db=session)

    click = service.create_click(
        link.id,
        ip_address="203.0.113.7",
        attribution=UTMAttribution(tracking_code="trk-001", source="facebook", campaign="spring"),
    )

    assert click.tracking_code == "trk-001"
    assert click.utm_source == "facebook"
    assert click.utm_campaign == "spring"
    assert _link_state(session, link.id).clicks == 1


def test_create_click_for_unknown_link_raises(session):
    with pytest.raises(NotFoundError):
        JourneyService(db=session).create_click(42)


def test_create_click_rejects_malformed_tracking_code(session, make_link):
    link = make_link()
    with pytest.raises(ValidationError):
        JourneyService(db=session).create_click(link.id, attribution={"tracking_code": "bad code!"})


def test_full_journey_updates_counters_and_rates(session, make_link, make_profile):
    creator = make_profile()
    link = make_link(creator_id=creator.id)
    service = JourneyService(db=session)
    service.create_click(link.id, attribution={"tracking_code": "trk-100"})

    started = service.track("trk-100", JourneyStage.INTAKE_STARTED)
    assert started.success is True
    assert started.attribution.material_id == link.id
    assert started.attribution.material_type == "flyer"
    assert started.attribution.creator_id == creator.id

    service.track("trk-100", JourneyStage.INTAKE_COMPLETED, actor_id=creator.id)
    service.track("trk-100", "RETURN_FILED")

    state = _link_state(session, link.id)
    assert (state.clicks, state.intake_starts, state.intake_completes, state.returns_filed) == (1, 1, 1, 1)
    assert state.conversions == 1
    assert state.returns == 1
    assert state.intake_conversion_rate == pytest.approx(100.0)
    assert state.complete_conversion_rate == pytest.approx(100.0)
    assert state.filed_conversion_rate == pytest.approx(100.0)

    click = service.find_click("trk-100")
    assert click.converted is True
    assert click.client_id == creator.id
    assert current_stage(click) == JourneyStage.RETURN_FILED


def test_skipping_a_stage_is_a_violation(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    service.create_click(link.id, attribution={"tracking_code": "trk-skip"})

    with pytest.raises(StageViolationError) as excinfo:
        service.track("trk-skip", JourneyStage.INTAKE_COMPLETED)

    assert excinfo.value.reason == "Cannot complete intake without starting it first"
    click = service.find_click("trk-skip")
    assert click.intake_completed_at is None
    assert _link_state(session, link.id).intake_completes == 0


def test_repeating_a_stage_leaves_counters_unchanged(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    service.create_click(link.id, attribution={"tracking_code": "trk-dup"})
    service.track("trk-dup", JourneyStage.INTAKE_STARTED)

    with pytest.raises(StageViolationError, match="Intake already started"):
        service.track("trk-dup", JourneyStage.INTAKE_STARTED)

    assert _link_state(session, link.id).intake_starts == 1


def test_stale_read_loses_compare_and_swap(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    service.create_click(link.id, attribution={"tracking_code": "trk-race"})
    click = service.find_click("trk-race")

    # Another writer stamps the stage after our read but before our update.
    session.execute(update(LinkClick).where(LinkClick.id == click.id).values(intake_started_at=utcnow()))
    session.commit()

    with pytest.raises(StageViolationError, match="Intake already started"):
        service._advance(click, JourneyStage.INTAKE_STARTED, actor_id=None)

    assert _link_state(session, link.id).intake_starts == 0


def test_conversion_rate_tracks_share_of_clicks(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    for index in range(4):
        service.create_click(link.id, attribution={"tracking_code": f"trk-rate-{index}"})

    service.track("trk-rate-0", JourneyStage.INTAKE_STARTED)
    service.track("trk-rate-1", JourneyStage.INTAKE_STARTED)

    state = _link_state(session, link.id)
    assert state.clicks == 4
    assert state.intake_starts == 2
    assert state.intake_conversion_rate == pytest.approx(50.0)
    assert state.complete_conversion_rate == pytest.approx(0.0)


def test_clicked_stage_is_a_no_op(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    service.create_click(link.id, attribution={"tracking_code": "trk-noop"})

    result = service.track("trk-noop", JourneyStage.CLICKED)

    assert result.success is True
    assert _link_state(session, link.id).clicks == 1


def test_tracking_latest_click_for_reused_code(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    older = service.create_click(link.id, attribution={"tracking_code": "trk-reused"})
    newer = service.create_click(link.id, attribution={"tracking_code": "trk-reused"})

    result = service.track("trk-reused", JourneyStage.INTAKE_STARTED)

    assert result.link_click.id == newer.id
    session.refresh(older)
    assert older.intake_started_at is None


def test_unknown_tracking_code(session):
    service = JourneyService(db=session)

    with pytest.raises(NotFoundError):
        service.track("missing-code", JourneyStage.INTAKE_STARTED)
    assert service.get_status("missing-code") is None


def test_get_status_reports_stage_flags(session, make_link):
    link = make_link()
    service = JourneyService(db=session)
    service.create_click(link.id, attribution={"tracking_code": "trk-status"})
    service.track("trk-status", JourneyStage.INTAKE_STARTED)

    status = service.get_status("trk-status")

    assert status["current_stage"] == "INTAKE_STARTED"
    assert status["stages"]["intake_started"] is True
    assert status["stages"]["intake_completed"] is False
    assert status["stages"]["return_filed_at"] is None
