from __future__ import annotations

from datetime import timedelta

import pytest

from leadflow.core.exceptions import NotFoundError
from leadflow.models import ActivityType, LeadActivity, TaskPriority, TaskStatus
from leadflow.models.base import utcnow
from leadflow.services.task_service import TaskService


def test_create_task_defaults_assignee_and_logs_activity(session, make_lead, make_profile):
    preparer = make_profile()
    lead = make_lead(assigned_to=preparer.id)
    due = utcnow() + timedelta(days=2)

    task = TaskService(db=session).create_task(
        lead.id,
        "Request prior-year return",
        priority=TaskPriority.HIGH,
        due_date=due,
    )

    assert task.assigned_to == preparer.id
    assert task.status == TaskStatus.TODO
    logged = session.query(LeadActivity).filter_by(lead_id=lead.id).one()
    assert logged.activity_type == ActivityType.TASK_CREATED
    assert logged.activity_metadata["task_id"] == task.id


def test_create_task_for_missing_lead_raises(session):
    with pytest.raises(NotFoundError):
        TaskService(db=session).create_task(123, "Ghost task")


def test_complete_task_is_idempotent(session, make_lead):
    lead = make_lead()
    service = TaskService(db=session)
    task = service.create_task(lead.id, "Collect W-2")

    first = service.complete_task(task.id)
    second = service.complete_task(task.id)

    assert first.status == TaskStatus.DONE
    assert second.completed_at == first.completed_at
    completed = session.query(LeadActivity).filter_by(activity_type=ActivityType.TASK_COMPLETED).count()
    assert completed == 1


def test_list_open_tasks_excludes_done(session, make_lead):
    lead = make_lead()
    service = TaskService(db=session)
    open_task = service.create_task(lead.id, "Schedule call")
    done_task = service.create_task(lead.id, "Send checklist")
    service.complete_task(done_task.id)

    assert [task.id for task in service.list_open_tasks(lead.id)] == [open_task.id]
