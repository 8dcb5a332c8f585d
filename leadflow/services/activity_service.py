"""Append-only lead activity log.

Every lifecycle component writes here. ``record`` is the single write path;
the ``log_*`` helpers are thin builders over it, and a few of them also apply
the one lead-side counter or timestamp that belongs with that event (opens,
clicks, last viewed, conversion). That side effect is staged in the same
transaction as the activity row.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update

from leadflow.core.exceptions import NotFoundError
from leadflow.models import ActivityType, Lead, LeadActivity
from leadflow.models.base import utcnow
from leadflow.services.base_service import BaseService
from leadflow.services.profile_service import ProfileService
from leadflow.utils.validators import sanitize_text

logger = logging.getLogger(__name__)


class ActivityService(BaseService):
    """Service for writing and reading the lead activity timeline."""

    def record(
        self,
        lead_id: int,
        activity_type: ActivityType,
        title: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
        created_by: int | None = None,
        created_by_name: str | None = None,
        automated: bool = False,
    ) -> LeadActivity:
        exists = self.db.scalar(select(Lead.id).where(Lead.id == lead_id))
        if exists is None:
            self.rollback()
            logger.error(
                "activity.lead_not_found",
                extra={"event": "activity.lead_not_found", "lead_id": lead_id},
            )
            raise NotFoundError(f"Lead {lead_id} not found")

        name = created_by_name
        if created_by is not None and not name:
            name = ProfileService(db=self.db).resolve_display_name(created_by)

        activity = LeadActivity(
            lead_id=lead_id,
            activity_type=activity_type,
            title=sanitize_text(title, 500),
            description=sanitize_text(description, 10000) or None,
            activity_metadata=metadata or None,
            created_by=created_by,
            created_by_name=name or ("System" if automated else "Unknown"),
            automated=automated,
            created_at=utcnow(),
        )
        self.db.add(activity)
        self.commit()
        self.db.refresh(activity)

        logger.info(
            "activity.recorded",
            extra={
                "event": "activity.recorded",
                "lead_id": lead_id,
                "activity_id": activity.id,
                "activity_type": activity_type.value,
                "automated": automated,
            },
        )
        return activity

    def _stage_lead_update(self, lead_id: int, **values: Any) -> None:
        self.db.execute(update(Lead).where(Lead.id == lead_id).values(**values))

    def log_contact_attempt(
        self,
        lead_id: int,
        method: str,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.CONTACT_ATTEMPTED,
            f"Contact attempted via {method}",
            metadata={"method": method},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_contact_made(
        self,
        lead_id: int,
        method: str,
        notes: str | None = None,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.CONTACT_MADE,
            f"Contact made via {method}",
            description=notes,
            metadata={"method": method},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_email_sent(
        self,
        lead_id: int,
        subject: str,
        email_id: str | None = None,
        campaign_id: str | None = None,
        automated: bool = False,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.EMAIL_SENT,
            subject,
            description="Automated email campaign" if automated else "Manual email sent",
            metadata={"email_id": email_id, "campaign_id": campaign_id},
            automated=automated,
        )

    def log_email_opened(self, lead_id: int, email_id: str, open_count: int = 1) -> LeadActivity:
        self._stage_lead_update(lead_id, email_opens=Lead.email_opens + 1)
        return self.record(
            lead_id,
            ActivityType.EMAIL_OPENED,
            "Email opened",
            description=f"Opened {open_count} times" if open_count > 1 else "First open",
            metadata={"email_id": email_id, "open_count": open_count},
            automated=True,
        )

    def log_email_clicked(self, lead_id: int, email_id: str, url: str) -> LeadActivity:
        self._stage_lead_update(lead_id, email_clicks=Lead.email_clicks + 1)
        return self.record(
            lead_id,
            ActivityType.EMAIL_CLICKED,
            "Email link clicked",
            description=f"Clicked: {url}",
            metadata={"email_id": email_id, "url": url},
            automated=True,
        )

    def log_status_change(
        self,
        lead_id: int,
        from_status: str,
        to_status: str,
        reason: str | None = None,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.STATUS_CHANGED,
            f"Status changed: {from_status} -> {to_status}",
            description=reason,
            metadata={"from_status": from_status, "to_status": to_status},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_note_added(
        self,
        lead_id: int,
        title: str,
        note: str,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.NOTE_ADDED,
            title,
            description=note,
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_task_created(
        self,
        lead_id: int,
        task_title: str,
        task_id: int | None = None,
        due_date: datetime | None = None,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.TASK_CREATED,
            f"Task created: {task_title}",
            description=f"Due: {due_date.date().isoformat()}" if due_date else None,
            metadata={"task_id": task_id, "due_date": due_date.isoformat() if due_date else None},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_task_completed(
        self,
        lead_id: int,
        task_title: str,
        task_id: int | None = None,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.TASK_COMPLETED,
            f"Task completed: {task_title}",
            metadata={"task_id": task_id},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_form_viewed(self, lead_id: int, form_name: str) -> LeadActivity:
        self._stage_lead_update(lead_id, last_viewed_at=utcnow())
        return self.record(
            lead_id,
            ActivityType.FORM_VIEWED,
            f"Form viewed: {form_name}",
            automated=True,
        )

    def log_document_uploaded(
        self,
        lead_id: int,
        file_name: str,
        file_type: str | None = None,
        file_size: int | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.DOCUMENT_UPLOADED,
            f"Document uploaded: {file_name}",
            metadata={"file_name": file_name, "file_type": file_type, "file_size": file_size},
            automated=True,
        )

    def log_meeting_scheduled(
        self,
        lead_id: int,
        meeting_date: datetime,
        meeting_type: str,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.MEETING_SCHEDULED,
            f"{meeting_type} scheduled",
            description=f"Scheduled for {meeting_date.isoformat()}",
            metadata={"meeting_date": meeting_date.isoformat(), "meeting_type": meeting_type},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_meeting_completed(
        self,
        lead_id: int,
        meeting_type: str,
        notes: str | None = None,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.MEETING_COMPLETED,
            f"{meeting_type} completed",
            description=notes,
            metadata={"meeting_type": meeting_type},
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_lead_converted(
        self,
        lead_id: int,
        preparer_id: int | None = None,
        preparer_name: str | None = None,
    ) -> LeadActivity:
        self._stage_lead_update(lead_id, converted_to_client=True)
        return self.record(
            lead_id,
            ActivityType.CONVERTED,
            "Lead converted to client",
            description="Successfully converted to paying client",
            created_by=preparer_id,
            created_by_name=preparer_name,
        )

    def log_lead_assigned(
        self,
        lead_id: int,
        assigned_to_name: str,
        assigned_by_id: int | None = None,
        assigned_by_name: str | None = None,
    ) -> LeadActivity:
        return self.record(
            lead_id,
            ActivityType.ASSIGNED,
            f"Lead assigned to {assigned_to_name}",
            description=f"Assigned by {assigned_by_name}" if assigned_by_name else "Auto-assigned",
            created_by=assigned_by_id,
            created_by_name=assigned_by_name,
            automated=assigned_by_id is None,
        )

    def list_for_lead(self, lead_id: int, limit: int = 50) -> list[LeadActivity]:
        stmt = (
            select(LeadActivity)
            .where(LeadActivity.lead_id == lead_id)
            .order_by(LeadActivity.created_at.desc(), LeadActivity.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def get_activity_stats(self, lead_id: int) -> dict[str, int]:
        stmt = (
            select(LeadActivity.activity_type, func.count(LeadActivity.id))
            .where(LeadActivity.lead_id == lead_id)
            .group_by(LeadActivity.activity_type)
        )
        return {activity_type.value: count for activity_type, count in self.db.execute(stmt)}

    def get_recent_activities(self, preparer_id: int | None = None, limit: int = 10) -> list[LeadActivity]:
        stmt = select(LeadActivity)
        if preparer_id is not None:
            stmt = stmt.join(Lead, Lead.id == LeadActivity.lead_id).where(Lead.assigned_to == preparer_id)
        stmt = stmt.order_by(LeadActivity.created_at.desc(), LeadActivity.id.desc()).limit(limit)
        return list(self.db.scalars(stmt))
