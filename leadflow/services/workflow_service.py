"""Workflow definition management."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models import Workflow, WorkflowAction, WorkflowExecution
from leadflow.schemas.workflows import WorkflowCreateRequest
from leadflow.services.base_service import BaseService
from leadflow.utils.validators import sanitize_text

logger = logging.getLogger(__name__)


class WorkflowService(BaseService):
    """CRUD and activation for workflows and their ordered actions."""

    def create(self, request: WorkflowCreateRequest | dict[str, Any]) -> Workflow:
        if isinstance(request, dict):
            try:
                request = WorkflowCreateRequest.model_validate(request)
            except PydanticValidationError as exc:
                raise ValidationError(str(exc)) from exc

        workflow = Workflow(
            name=sanitize_text(request.name, 255),
            description=sanitize_text(request.description, 5000) or None,
            trigger=request.trigger,
            trigger_conditions=request.trigger_conditions,
            priority=request.priority,
            is_active=request.is_active,
            created_by=request.created_by,
        )
        workflow.actions = [
            WorkflowAction(
                action_type=spec.action_type,
                action_config=spec.action_config,
                order=spec.order,
                conditions=spec.conditions,
                delay_minutes=spec.delay_minutes,
            )
            for spec in sorted(request.actions, key=lambda spec: spec.order)
        ]
        self.db.add(workflow)
        self.commit()
        self.db.refresh(workflow)

        logger.info(
            "workflow.created",
            extra={
                "event": "workflow.created",
                "workflow_id": workflow.id,
                "trigger": workflow.trigger.value,
                "action_count": len(request.actions),
            },
        )
        return workflow

    def get(self, workflow_id: int) -> Workflow:
        workflow = self.db.get(Workflow, workflow_id)
        if workflow is None:
            raise NotFoundError(f"Workflow {workflow_id} not found")
        return workflow

    def _set_active(self, workflow_id: int, active: bool) -> Workflow:
        workflow = self.get(workflow_id)
        workflow.is_active = active
        self.commit()
        self.db.refresh(workflow)
        event = "workflow.activated" if active else "workflow.deactivated"
        logger.info(event, extra={"event": event, "workflow_id": workflow_id})
        return workflow

    def activate(self, workflow_id: int) -> Workflow:
        return self._set_active(workflow_id, True)

    def deactivate(self, workflow_id: int) -> Workflow:
        return self._set_active(workflow_id, False)

    def list_all(self, created_by: int | None = None) -> list[Workflow]:
        stmt = select(Workflow)
        if created_by is not None:
            stmt = stmt.where(Workflow.created_by == created_by)
        stmt = stmt.order_by(Workflow.priority.desc(), Workflow.created_at.desc(), Workflow.id.desc())
        return list(self.db.scalars(stmt))

    def delete(self, workflow_id: int) -> None:
        workflow = self.get(workflow_id)
        self.db.delete(workflow)
        self.commit()
        logger.info("workflow.deleted", extra={"event": "workflow.deleted", "workflow_id": workflow_id})

    def list_executions(
        self,
        workflow_id: int | None = None,
        lead_id: int | None = None,
        limit: int = 50,
    ) -> list[WorkflowExecution]:
        stmt = select(WorkflowExecution)
        if workflow_id is not None:
            stmt = stmt.where(WorkflowExecution.workflow_id == workflow_id)
        if lead_id is not None:
            stmt = stmt.where(WorkflowExecution.lead_id == lead_id)
        stmt = stmt.order_by(WorkflowExecution.created_at.desc(), WorkflowExecution.id.desc()).limit(limit)
        return list(self.db.scalars(stmt))
