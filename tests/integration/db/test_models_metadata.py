from __future__ import annotations

from leadflow.models import Base
import leadflow.models  # noqa: F401


def test_model_metadata_contains_lifecycle_tables():
    expected = {
        "profiles",
        "leads",
        "lead_activities",
        "lead_tasks",
        "lead_score_history",
        "marketing_links",
        "link_clicks",
        "workflows",
        "workflow_actions",
        "workflow_executions",
        "scheduled_workflow_actions",
    }
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_journey_stage_columns_are_nullable_timestamps():
    clicks = Base.metadata.tables["link_clicks"]
    for column in ("intake_started_at", "intake_completed_at", "return_filed_at"):
        assert clicks.c[column].nullable is True
