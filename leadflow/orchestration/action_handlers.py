"""Workflow action handlers.

Each handler is a narrow operation over one lead. Handlers raise on failure;
``dispatch_action`` validates the action config, runs the handler, and turns
any error into a failed ``ActionResult`` so one bad action never stops the
rest of the chain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from leadflow.core.exceptions import CollaboratorError, NotFoundError, ValidationError
from leadflow.models import Lead, Workflow, WorkflowActionType
from leadflow.schemas.workflows import (
    ACTION_CONFIG_MODELS,
    AssignToPreparerConfig,
    CreateTaskConfig,
    SendEmailConfig,
    SendNotificationConfig,
    UpdateFieldConfig,
    UpdateStatusConfig,
)
from leadflow.services.activity_service import ActivityService
from leadflow.services.email_sender import EmailMessage, EmailSender
from leadflow.services.profile_service import ProfileService
from leadflow.services.task_service import TaskService

logger = logging.getLogger(__name__)

AUTOMATION_ACTOR_NAME = "Workflow Automation"
AUTOMATED_STATUS_REASON = "Automated workflow"
PROTECTED_LEAD_FIELDS = frozenset({"id", "created_at"})


@dataclass(frozen=True)
class ActionResult:
    success: bool
    result: dict[str, Any] | None = None
    error: str | None = None


@dataclass
class ActionContext:
    db: Session
    lead: Lead
    workflow: Workflow
    lead_id: int
    workflow_id: int
    actor_id: int | None
    email_sender: EmailSender


def send_email(ctx: ActionContext, config: SendEmailConfig) -> dict[str, Any]:
    lead = ctx.lead
    if not lead.email:
        raise ValidationError("Lead has no email address")

    sent = ctx.email_sender.send(
        EmailMessage(
            to=lead.email,
            subject=config.subject,
            html_body=config.html_body,
            plain_text_body=config.plain_text_body,
            to_name=lead.full_name or None,
        )
    )
    if not sent.success:
        raise CollaboratorError(sent.error or "Email send failed")

    ActivityService(db=ctx.db).log_email_sent(
        ctx.lead_id,
        config.subject,
        email_id=sent.id,
        campaign_id=f"workflow-{ctx.workflow_id}",
        automated=True,
    )
    return {"email_id": sent.id}


def create_task(ctx: ActionContext, config: CreateTaskConfig) -> dict[str, Any]:
    actor_name = ProfileService(db=ctx.db).resolve_display_name(ctx.actor_id) or AUTOMATION_ACTOR_NAME
    task = TaskService(db=ctx.db).create_task(
        ctx.lead_id,
        config.title,
        description=config.description,
        priority=config.priority,
        due_date=config.due_date,
        assigned_to=config.assigned_to,
        created_by=ctx.actor_id,
        created_by_name=actor_name,
    )
    return {"task_id": task.id}


def assign_to_preparer(ctx: ActionContext, config: AssignToPreparerConfig) -> dict[str, Any]:
    profiles = ProfileService(db=ctx.db)
    preparer = profiles.get_profile(config.preparer_id)
    if preparer is None:
        raise NotFoundError(f"Preparer {config.preparer_id} not found")

    ctx.lead.assigned_to = preparer.id
    ActivityService(db=ctx.db).log_lead_assigned(
        ctx.lead_id,
        preparer.display_name,
        assigned_by_id=ctx.actor_id,
        assigned_by_name=profiles.resolve_display_name(ctx.actor_id),
    )
    return {"preparer_id": preparer.id}


def update_status(ctx: ActionContext, config: UpdateStatusConfig) -> dict[str, Any]:
    old_status = ctx.lead.status
    ctx.lead.status = config.status
    ActivityService(db=ctx.db).log_status_change(
        ctx.lead_id,
        old_status.value,
        config.status.value,
        AUTOMATED_STATUS_REASON,
        preparer_id=ctx.actor_id,
    )
    return {"from_status": old_status.value, "to_status": config.status.value}


def send_notification(ctx: ActionContext, config: SendNotificationConfig) -> dict[str, Any]:
    recipient_id = config.recipient_id or ctx.lead.assigned_to
    logger.info(
        "workflow.notification",
        extra={
            "event": "workflow.notification",
            "lead_id": ctx.lead_id,
            "workflow_id": ctx.workflow_id,
            "recipient_id": recipient_id,
            "notification_message": config.message,
        },
    )
    return {"recipient_id": recipient_id, "message": config.message}


def update_field(ctx: ActionContext, config: UpdateFieldConfig) -> dict[str, Any]:
    columns = {attr.key for attr in inspect(Lead).column_attrs}
    if config.field not in columns:
        raise ValidationError(f"Unknown lead field: {config.field}")
    if config.field in PROTECTED_LEAD_FIELDS:
        raise ValidationError(f"Lead field {config.field} cannot be updated")

    setattr(ctx.lead, config.field, config.value)
    ctx.db.flush()
    return {"field": config.field, "value": config.value}


ACTION_HANDLERS: dict[WorkflowActionType, Callable[[ActionContext, Any], dict[str, Any]]] = {
    WorkflowActionType.SEND_EMAIL: send_email,
    WorkflowActionType.CREATE_TASK: create_task,
    WorkflowActionType.ASSIGN_TO_PREPARER: assign_to_preparer,
    WorkflowActionType.UPDATE_STATUS: update_status,
    WorkflowActionType.SEND_NOTIFICATION: send_notification,
    WorkflowActionType.UPDATE_FIELD: update_field,
}


def parse_action_config(action_type: WorkflowActionType, raw: dict[str, Any] | None) -> BaseModel:
    model = ACTION_CONFIG_MODELS[action_type]
    try:
        return model.model_validate(raw or {})
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {action_type.value} config: {exc.errors(include_url=False)}") from exc


def dispatch_action(
    ctx: ActionContext,
    action_type: WorkflowActionType | str,
    raw_config: dict[str, Any] | None,
) -> ActionResult:
    try:
        action_type = WorkflowActionType(action_type)
        handler = ACTION_HANDLERS[action_type]
        config = parse_action_config(action_type, raw_config)
        return ActionResult(success=True, result=handler(ctx, config))
    except Exception as exc:
        logger.warning(
            "workflow.action_failed",
            extra={
                "event": "workflow.action_failed",
                "lead_id": ctx.lead_id,
                "workflow_id": ctx.workflow_id,
                "action_type": getattr(action_type, "value", action_type),
                "error": str(exc),
            },
            exc_info=not isinstance(exc, (ValidationError, NotFoundError, CollaboratorError, ValueError)),
        )
        return ActionResult(success=False, error=str(exc))
