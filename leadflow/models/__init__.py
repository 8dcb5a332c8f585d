"""SQLAlchemy model package for the lead lifecycle schema."""

from leadflow.models.base import Base
from leadflow.models.enums import (
    ActionOutcome,
    ActivityType,
    ExecutionStatus,
    JourneyStage,
    LeadStatus,
    LeadUrgency,
    ScheduledActionStatus,
    TaskPriority,
    TaskStatus,
    WorkflowActionType,
    WorkflowTrigger,
)
from leadflow.models.lead import Lead
from leadflow.models.lead_activity import LeadActivity
from leadflow.models.lead_score_history import LeadScoreHistory
from leadflow.models.lead_task import LeadTask
from leadflow.models.link_click import LinkClick
from leadflow.models.marketing_link import MarketingLink
from leadflow.models.profile import Profile
from leadflow.models.workflow import Workflow, WorkflowAction
from leadflow.models.workflow_execution import ScheduledWorkflowAction, WorkflowExecution

__all__ = [
    "ActionOutcome",
    "ActivityType",
    "Base",
    "ExecutionStatus",
    "JourneyStage",
    "Lead",
    "LeadActivity",
    "LeadScoreHistory",
    "LeadStatus",
    "LeadTask",
    "LeadUrgency",
    "LinkClick",
    "MarketingLink",
    "Profile",
    "ScheduledActionStatus",
    "ScheduledWorkflowAction",
    "TaskPriority",
    "TaskStatus",
    "Workflow",
    "WorkflowAction",
    "WorkflowActionType",
    "WorkflowExecution",
    "WorkflowTrigger",
]
