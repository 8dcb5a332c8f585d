"""Canonical enum values for the lifecycle schema."""

from __future__ import annotations

import enum


class LeadStatus(str, enum.Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    DOCUMENTS = "DOCUMENTS"
    FILED = "FILED"
    CLOSED = "CLOSED"
    LOST = "LOST"


class LeadUrgency(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ActivityType(str, enum.Enum):
    CONTACT_ATTEMPTED = "CONTACT_ATTEMPTED"
    CONTACT_MADE = "CONTACT_MADE"
    EMAIL_SENT = "EMAIL_SENT"
    EMAIL_OPENED = "EMAIL_OPENED"
    EMAIL_CLICKED = "EMAIL_CLICKED"
    STATUS_CHANGED = "STATUS_CHANGED"
    NOTE_ADDED = "NOTE_ADDED"
    TASK_CREATED = "TASK_CREATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    FORM_VIEWED = "FORM_VIEWED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    MEETING_SCHEDULED = "MEETING_SCHEDULED"
    MEETING_COMPLETED = "MEETING_COMPLETED"
    CONVERTED = "CONVERTED"
    ASSIGNED = "ASSIGNED"


class JourneyStage(str, enum.Enum):
    CLICKED = "CLICKED"
    INTAKE_STARTED = "INTAKE_STARTED"
    INTAKE_COMPLETED = "INTAKE_COMPLETED"
    RETURN_FILED = "RETURN_FILED"


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class WorkflowTrigger(str, enum.Enum):
    LEAD_CREATED = "LEAD_CREATED"
    LEAD_STATUS_CHANGED = "LEAD_STATUS_CHANGED"
    LEAD_ASSIGNED = "LEAD_ASSIGNED"
    JOURNEY_STAGE_CHANGED = "JOURNEY_STAGE_CHANGED"
    EMAIL_OPENED = "EMAIL_OPENED"
    EMAIL_CLICKED = "EMAIL_CLICKED"
    FORM_SUBMITTED = "FORM_SUBMITTED"
    LEAD_SCORED = "LEAD_SCORED"
    MANUAL = "MANUAL"


class WorkflowActionType(str, enum.Enum):
    SEND_EMAIL = "SEND_EMAIL"
    CREATE_TASK = "CREATE_TASK"
    ASSIGN_TO_PREPARER = "ASSIGN_TO_PREPARER"
    UPDATE_STATUS = "UPDATE_STATUS"
    SEND_NOTIFICATION = "SEND_NOTIFICATION"
    UPDATE_FIELD = "UPDATE_FIELD"


class ExecutionStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ActionOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    PENDING = "pending"
    DELAYED = "delayed"


class ScheduledActionStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
