from __future__ import annotations

from datetime import datetime, timezone

import pytest

from leadflow.core.exceptions import NotFoundError
from leadflow.models import ActivityType, Lead, LeadActivity
from leadflow.services.activity_service import ActivityService


def test_record_rejects_unknown_lead(session):
    service = ActivityService(db=session)

    with pytest.raises(NotFoundError):
        service.record(999, ActivityType.NOTE_ADDED, "Orphan note")

    assert session.query(LeadActivity).count() == 0


def test_record_denormalizes_actor_name(session, make_lead, make_profile):
    lead = make_lead()
    preparer = make_profile(first_name="Sam", last_name="Rivera")

    activity = ActivityService(db=session).record(
        lead.id,
        ActivityType.NOTE_ADDED,
        "Called back",
        created_by=preparer.id,
    )

    assert activity.created_by_name == "Sam Rivera"
    assert activity.automated is False


def test_record_falls_back_when_actor_cannot_be_resolved(session, make_lead):
    lead = make_lead()
    service = ActivityService(db=session)

    manual = service.record(lead.id, ActivityType.NOTE_ADDED, "Note", created_by=404)
    automated = service.record(lead.id, ActivityType.FORM_VIEWED, "Viewed", automated=True)

    assert manual.created_by_name == "Unknown"
    assert automated.created_by_name == "System"


def test_email_open_and_click_increment_lead_counters(session, make_lead):
    lead = make_lead()
    service = ActivityService(db=session)

    service.log_email_opened(lead.id, "email-1")
    service.log_email_opened(lead.id, "email-1", open_count=2)
    service.log_email_clicked(lead.id, "email-1", "https://example.com/intake")

    refreshed = session.get(Lead, lead.id)
    session.refresh(refreshed)
    assert refreshed.email_opens == 2
    assert refreshed.email_clicks == 1


def test_form_view_stamps_last_viewed_and_conversion_sets_flag(session, make_lead):
    lead = make_lead()
    service = ActivityService(db=session)

    service.log_form_viewed(lead.id, "2025 intake")
    service.log_lead_converted(lead.id)

    refreshed = session.get(Lead, lead.id)
    session.refresh(refreshed)
    assert refreshed.last_viewed_at is not None
    assert refreshed.converted_to_client is True


def test_status_change_records_transition_metadata(session, make_lead):
    lead = make_lead()

    activity = ActivityService(db=session).log_status_change(lead.id, "NEW", "CONTACTED", "First call")

    assert activity.activity_type == ActivityType.STATUS_CHANGED
    assert activity.title == "Status changed: NEW -> CONTACTED"
    assert activity.activity_metadata == {"from_status": "NEW", "to_status": "CONTACTED"}


def test_stats_and_recent_activity_views(session, make_lead, make_profile):
    preparer = make_profile()
    mine = make_lead(assigned_to=preparer.id)
    other = make_lead(email="other@example.com")
    service = ActivityService(db=session)

    service.log_contact_attempt(mine.id, "phone")
    service.log_contact_attempt(mine.id, "sms")
    service.log_note_added(mine.id, "Docs", "Needs W-2")
    service.log_note_added(other.id, "Other", "Unassigned lead")

    stats = service.get_activity_stats(mine.id)
    assert stats == {"CONTACT_ATTEMPTED": 2, "NOTE_ADDED": 1}

    recent = service.get_recent_activities(preparer_id=preparer.id, limit=10)
    assert len(recent) == 3
    assert all(activity.lead_id == mine.id for activity in recent)

    timeline = service.list_for_lead(mine.id)
    assert timeline[0].title == "Docs"


def test_meeting_document_and_contact_helpers(session, make_lead):
    lead = make_lead()
    service = ActivityService(db=session)
    when = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)

    contact = service.log_contact_made(lead.id, "phone", notes="Left details", preparer_name="Front desk")
    scheduled = service.log_meeting_scheduled(lead.id, when, "Consultation")
    completed = service.log_meeting_completed(lead.id, "Consultation", notes="Docs reviewed")
    uploaded = service.log_document_uploaded(lead.id, "w2.pdf", file_type="application/pdf", file_size=2048)

    assert contact.created_by_name == "Front desk"
    assert scheduled.activity_metadata["meeting_date"] == when.isoformat()
    assert completed.title == "Consultation completed"
    assert uploaded.automated is True
    assert uploaded.created_by_name == "System"
    assert service.get_activity_stats(lead.id)["DOCUMENT_UPLOADED"] == 1
