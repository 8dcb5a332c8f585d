"""Lead task service (follow-ups created by preparers and workflows)."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select

from leadflow.core.exceptions import NotFoundError
from leadflow.models import Lead, LeadTask, TaskPriority, TaskStatus
from leadflow.models.base import utcnow
from leadflow.services.activity_service import ActivityService
from leadflow.services.base_service import BaseService
from leadflow.utils.validators import sanitize_text

logger = logging.getLogger(__name__)

OPEN_TASK_STATUSES = (TaskStatus.TODO, TaskStatus.IN_PROGRESS)


class TaskService(BaseService):
    """Service for lead task creation and completion."""

    def create_task(
        self,
        lead_id: int,
        title: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: datetime | None = None,
        assigned_to: int | None = None,
        created_by: int | None = None,
        created_by_name: str | None = None,
    ) -> LeadTask:
        lead = self.db.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found")

        task = LeadTask(
            lead_id=lead_id,
            title=sanitize_text(title, 500),
            description=sanitize_text(description, 10000) or None,
            priority=priority,
            due_date=due_date,
            assigned_to=assigned_to if assigned_to is not None else lead.assigned_to,
            created_by=created_by,
            created_by_name=created_by_name,
        )
        self.db.add(task)
        self.commit()
        self.db.refresh(task)

        ActivityService(db=self.db).log_task_created(
            lead_id,
            task.title,
            task_id=task.id,
            due_date=due_date,
            preparer_id=created_by,
            preparer_name=created_by_name,
        )
        logger.info(
            "task.created",
            extra={"event": "task.created", "lead_id": lead_id, "task_id": task.id},
        )
        return task

    def get_task(self, task_id: int) -> LeadTask | None:
        return self.db.get(LeadTask, task_id)

    def complete_task(
        self,
        task_id: int,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadTask:
        task = self.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        if task.status == TaskStatus.DONE:
            return task

        task.status = TaskStatus.DONE
        task.completed_at = utcnow()
        self.commit()
        self.db.refresh(task)

        ActivityService(db=self.db).log_task_completed(
            task.lead_id,
            task.title,
            task_id=task.id,
            preparer_id=preparer_id,
            preparer_name=preparer_name,
        )
        return task

    def list_open_tasks(self, lead_id: int) -> list[LeadTask]:
        stmt = (
            select(LeadTask)
            .where(LeadTask.lead_id == lead_id, LeadTask.status.in_(OPEN_TASK_STATUSES))
            .order_by(LeadTask.due_date.is_(None), LeadTask.due_date, LeadTask.id)
        )
        return list(self.db.scalars(stmt))
