"""Workflow definition and action config schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leadflow.models.enums import LeadStatus, TaskPriority, WorkflowActionType, WorkflowTrigger


class WorkflowActionSpec(BaseModel):
    action_type: WorkflowActionType
    action_config: dict[str, Any] = Field(default_factory=dict)
    order: int = Field(default=0, ge=0)
    conditions: dict[str, Any] | None = None
    delay_minutes: int = Field(default=0, ge=0)


class WorkflowCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    trigger: WorkflowTrigger
    trigger_conditions: dict[str, Any] | None = None
    actions: list[WorkflowActionSpec] = Field(default_factory=list)
    priority: int = 0
    is_active: bool = True
    created_by: int | None = None

    @field_validator("actions")
    @classmethod
    def action_orders_are_unique(cls, value: list[WorkflowActionSpec]) -> list[WorkflowActionSpec]:
        orders = [action.order for action in value]
        if len(orders) != len(set(orders)):
            raise ValueError("action order values must be unique within a workflow")
        return value


class WorkflowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    trigger: WorkflowTrigger
    trigger_conditions: dict[str, Any] | None = None
    priority: int
    is_active: bool
    execution_count: int
    success_count: int
    failure_count: int
    last_executed_at: datetime | None = None


# Per-action configs, validated when the action runs rather than when the
# workflow is saved, so a bad config fails one action and not the whole run.


class SendEmailConfig(BaseModel):
    subject: str = Field(min_length=1, max_length=500)
    html_body: str = Field(min_length=1)
    plain_text_body: str | None = None


class CreateTaskConfig(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    assigned_to: int | None = None


class AssignToPreparerConfig(BaseModel):
    preparer_id: int


class UpdateStatusConfig(BaseModel):
    status: LeadStatus


class SendNotificationConfig(BaseModel):
    recipient_id: int | None = None
    message: str = ""


class UpdateFieldConfig(BaseModel):
    field: str = Field(min_length=1)
    value: Any = None


ACTION_CONFIG_MODELS: dict[WorkflowActionType, type[BaseModel]] = {
    WorkflowActionType.SEND_EMAIL: SendEmailConfig,
    WorkflowActionType.CREATE_TASK: CreateTaskConfig,
    WorkflowActionType.ASSIGN_TO_PREPARER: AssignToPreparerConfig,
    WorkflowActionType.UPDATE_STATUS: UpdateStatusConfig,
    WorkflowActionType.SEND_NOTIFICATION: SendNotificationConfig,
    WorkflowActionType.UPDATE_FIELD: UpdateFieldConfig,
}
