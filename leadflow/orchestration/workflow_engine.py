"""Rule-based workflow automation engine.

``execute_workflows`` fans a trigger out to every active workflow whose
trigger conditions match the lead; ``execute_workflow`` runs one workflow's
actions in order. Progress (counters and the execution log) is committed after
every action, so a crash leaves an accurate partial record for the reaper.

Actions with a delay are persisted as ``ScheduledWorkflowAction`` rows and run
later by the scheduler; the execution stays ``running`` until the last of them
settles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from leadflow.core.config import Config, get_config
from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models import (
    ActionOutcome,
    ExecutionStatus,
    Lead,
    ScheduledActionStatus,
    ScheduledWorkflowAction,
    Workflow,
    WorkflowAction,
    WorkflowActionType,
    WorkflowExecution,
    WorkflowTrigger,
)
from leadflow.models.base import utcnow
from leadflow.orchestration.action_handlers import ActionContext, ActionResult, dispatch_action
from leadflow.orchestration.conditions import conditions_match, lead_snapshot
from leadflow.orchestration.state_machine import execution_state_machine
from leadflow.services.base_service import BaseService
from leadflow.services.email_sender import EmailSender, SmtpEmailSender

logger = logging.getLogger(__name__)

UNSETTLED_SCHEDULED_STATUSES = (ScheduledActionStatus.PENDING, ScheduledActionStatus.RUNNING)


@dataclass(frozen=True)
class PlannedAction:
    """Detached copy of a workflow action, safe to read across commits."""

    id: int
    action_type: WorkflowActionType
    action_config: dict[str, Any]
    order: int
    conditions: dict[str, Any] | None
    delay_minutes: int

    @classmethod
    def from_model(cls, action: WorkflowAction) -> "PlannedAction":
        return cls(
            id=action.id,
            action_type=action.action_type,
            action_config=dict(action.action_config or {}),
            order=action.order,
            conditions=action.conditions,
            delay_minutes=action.delay_minutes or 0,
        )


def _log_entry(action: PlannedAction, outcome: ActionOutcome, **fields: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "action_id": action.id,
        "action_type": action.action_type.value,
        "order": action.order,
        "status": outcome.value,
        "timestamp": utcnow().isoformat(),
    }
    entry.update({key: value for key, value in fields.items() if value is not None})
    return entry


def _trigger(value: WorkflowTrigger | str) -> WorkflowTrigger:
    try:
        return WorkflowTrigger(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown workflow trigger: {value}") from exc


class WorkflowEngine(BaseService):
    """Executes workflows and their actions against a single lead."""

    def __init__(
        self,
        db: Session | None = None,
        email_sender: EmailSender | None = None,
        config: Config | None = None,
    ) -> None:
        super().__init__(db=db)
        self.config = config or get_config()
        self.email_sender = email_sender or SmtpEmailSender(self.config)

    def execute_workflows(
        self,
        trigger: WorkflowTrigger | str,
        lead_id: int,
        actor_id: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Run every matching active workflow for the trigger; return how many ran."""
        trigger = _trigger(trigger)
        if self.db.get(Lead, lead_id) is None:
            raise NotFoundError(f"Lead {lead_id} not found")

        candidates = self.db.execute(
            select(Workflow.id, Workflow.trigger_conditions)
            .where(Workflow.trigger == trigger, Workflow.is_active.is_(True))
            .order_by(Workflow.priority.desc(), Workflow.id)
        ).all()

        executed = 0
        for workflow_id, trigger_conditions in candidates:
            try:
                lead = self.db.get(Lead, lead_id)
                if not conditions_match(trigger_conditions, lead_snapshot(lead)):
                    logger.info(
                        "workflow.conditions_not_met",
                        extra={
                            "event": "workflow.conditions_not_met",
                            "workflow_id": workflow_id,
                            "lead_id": lead_id,
                        },
                    )
                    continue
                self.execute_workflow(workflow_id, lead_id, actor_id=actor_id)
                executed += 1
            except Exception:
                self.rollback()
                logger.exception(
                    "workflow.execution_error",
                    extra={"event": "workflow.execution_error", "workflow_id": workflow_id, "lead_id": lead_id},
                )

        logger.info(
            "workflow.trigger_processed",
            extra={
                "event": "workflow.trigger_processed",
                "trigger": trigger.value,
                "lead_id": lead_id,
                "matched": len(candidates),
                "executed": executed,
                "data_keys": sorted((data or {}).keys()),
            },
        )
        return executed

    def execute_workflow(self, workflow_id: int, lead_id: int, actor_id: int | None = None) -> WorkflowExecution:
        workflow = self.db.get(Workflow, workflow_id)
        if workflow is None:
            raise NotFoundError(f"Workflow {workflow_id} not found")
        if self.db.get(Lead, lead_id) is None:
            raise NotFoundError(f"Lead {lead_id} not found")

        plan = [PlannedAction.from_model(action) for action in workflow.actions]
        execution = WorkflowExecution(
            workflow_id=workflow_id,
            lead_id=lead_id,
            triggered_by=actor_id,
            status=ExecutionStatus.RUNNING,
            execution_log=[],
        )
        self.db.add(execution)
        self.commit()
        execution_id = execution.id

        logger.info(
            "workflow.execution_started",
            extra={
                "event": "workflow.execution_started",
                "workflow_id": workflow_id,
                "lead_id": lead_id,
                "execution_id": execution_id,
                "action_count": len(plan),
            },
        )

        for action in plan:
            if not self._run_planned_action(execution, workflow_id, lead_id, action, actor_id):
                break

        self.finalize_if_settled(execution_id)
        self.db.refresh(execution)
        return execution

    def _run_planned_action(
        self,
        execution: WorkflowExecution,
        workflow_id: int,
        lead_id: int,
        action: PlannedAction,
        actor_id: int | None,
    ) -> bool:
        if not self._is_running(execution.id):
            return False

        if action.delay_minutes > 0:
            if self.config.WORKFLOW_DELAYED_ACTIONS_ENABLED:
                scheduled = ScheduledWorkflowAction(
                    execution_id=execution.id,
                    workflow_action_id=action.id,
                    lead_id=lead_id,
                    actor_id=actor_id,
                    due_at=utcnow() + timedelta(minutes=action.delay_minutes),
                    status=ScheduledActionStatus.PENDING,
                )
                self.db.add(scheduled)
                self.db.flush()
                entry = _log_entry(
                    action,
                    ActionOutcome.PENDING,
                    delay_minutes=action.delay_minutes,
                    scheduled_action_id=scheduled.id,
                )
            else:
                entry = _log_entry(action, ActionOutcome.DELAYED, delay_minutes=action.delay_minutes)
            return self._record_progress(execution, entry)

        lead = self.db.get(Lead, lead_id)
        if action.conditions and not conditions_match(action.conditions, lead_snapshot(lead)):
            return self._record_progress(execution, _log_entry(action, ActionOutcome.SKIPPED, reason="Conditions not met"))

        result = self._dispatch(workflow_id, lead_id, action, actor_id)
        return self._record_progress(execution, self._outcome_entry(action, result), executed=True, result=result)

    def _dispatch(
        self,
        workflow_id: int,
        lead_id: int,
        action: PlannedAction,
        actor_id: int | None,
    ) -> ActionResult:
        ctx = ActionContext(
            db=self.db,
            lead=self.db.get(Lead, lead_id),
            workflow=self.db.get(Workflow, workflow_id),
            lead_id=lead_id,
            workflow_id=workflow_id,
            actor_id=actor_id,
            email_sender=self.email_sender,
        )
        result = dispatch_action(ctx, action.action_type, action.action_config)
        if not result.success:
            # Discard whatever the failed handler staged before recording the failure.
            self.rollback()
        return result

    @staticmethod
    def _outcome_entry(action: PlannedAction, result: ActionResult, **fields: Any) -> dict[str, Any]:
        if result.success:
            return _log_entry(action, ActionOutcome.SUCCESS, result=result.result, **fields)
        return _log_entry(action, ActionOutcome.FAILED, error=result.error, **fields)

    def _is_running(self, execution_id: int) -> bool:
        # Read through to the database; the reaper works from another session.
        status = self.db.scalar(select(WorkflowExecution.status).where(WorkflowExecution.id == execution_id))
        return status == ExecutionStatus.RUNNING

    def _record_progress(
        self,
        execution: WorkflowExecution,
        entry: dict[str, Any],
        executed: bool = False,
        result: ActionResult | None = None,
    ) -> bool:
        """Append the entry and bump counters; False once the execution is terminal."""
        if not self._is_running(execution.id):
            # Keep the action's own side effects, leave the settled execution untouched.
            self.commit()
            logger.warning(
                "workflow.progress_after_terminal",
                extra={
                    "event": "workflow.progress_after_terminal",
                    "execution_id": execution.id,
                    "action_id": entry.get("action_id"),
                    "action_status": entry.get("status"),
                },
            )
            return False

        # JSON columns only persist on reassignment.
        execution.execution_log = [*(execution.execution_log or []), entry]
        if executed and result is not None:
            execution.actions_executed += 1
            if result.success:
                execution.actions_succeeded += 1
            else:
                execution.actions_failed += 1
        self.commit()
        return True

    def _claim_scheduled(self, scheduled_id: int, now: datetime) -> bool:
        claimed = self.db.execute(
            update(ScheduledWorkflowAction)
            .where(
                ScheduledWorkflowAction.id == scheduled_id,
                ScheduledWorkflowAction.status == ScheduledActionStatus.PENDING,
            )
            .values(status=ScheduledActionStatus.RUNNING, attempted_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            self.rollback()
            return False
        self.commit()
        return True

    def _settle_scheduled(self, scheduled_id: int, status: ScheduledActionStatus, **values: Any) -> None:
        # Only the worker holding the claim may settle the row.
        self.db.execute(
            update(ScheduledWorkflowAction)
            .where(
                ScheduledWorkflowAction.id == scheduled_id,
                ScheduledWorkflowAction.status == ScheduledActionStatus.RUNNING,
            )
            .values(status=status, **values)
            .execution_options(synchronize_session=False)
        )

    def run_scheduled_action(self, scheduled_id: int, now: datetime | None = None) -> ActionResult | None:
        """Claim and run one due scheduled action; None when another worker holds or settled it."""
        now = now or utcnow()
        if not self._claim_scheduled(scheduled_id, now):
            logger.info(
                "workflow.scheduled_action_not_claimed",
                extra={"event": "workflow.scheduled_action_not_claimed", "scheduled_action_id": scheduled_id},
            )
            return None

        scheduled = self.db.get(ScheduledWorkflowAction, scheduled_id)
        action = PlannedAction.from_model(scheduled.action)
        lead_id = scheduled.lead_id
        actor_id = scheduled.actor_id
        execution_id = scheduled.execution_id
        execution = self.db.get(WorkflowExecution, execution_id)

        if execution.status != ExecutionStatus.RUNNING:
            error = f"Execution is {execution.status.value}"
            self._settle_scheduled(scheduled_id, ScheduledActionStatus.FAILED, error=error)
            self.commit()
            return ActionResult(success=False, error=error)

        lead = self.db.get(Lead, lead_id)
        if action.conditions and not conditions_match(action.conditions, lead_snapshot(lead)):
            self._settle_scheduled(scheduled_id, ScheduledActionStatus.COMPLETED, result={"skipped": True})
            self._record_progress(
                execution,
                _log_entry(
                    action,
                    ActionOutcome.SKIPPED,
                    reason="Conditions not met",
                    scheduled_action_id=scheduled_id,
                ),
            )
            self.finalize_if_settled(execution_id)
            return ActionResult(success=True, result={"skipped": True})

        result = self._dispatch(execution.workflow_id, lead_id, action, actor_id)
        self._settle_scheduled(
            scheduled_id,
            ScheduledActionStatus.COMPLETED if result.success else ScheduledActionStatus.FAILED,
            result=result.result,
            error=result.error,
        )
        self._record_progress(
            self.db.get(WorkflowExecution, execution_id),
            self._outcome_entry(action, result, scheduled_action_id=scheduled_id),
            executed=True,
            result=result,
        )
        self.finalize_if_settled(execution_id)

        logger.info(
            "workflow.scheduled_action_run",
            extra={
                "event": "workflow.scheduled_action_run",
                "execution_id": execution_id,
                "scheduled_action_id": scheduled_id,
                "success": result.success,
            },
        )
        return result

    def _pending_scheduled_count(self, execution_id: int) -> int:
        return self.db.scalar(
            select(func.count(ScheduledWorkflowAction.id)).where(
                ScheduledWorkflowAction.execution_id == execution_id,
                ScheduledWorkflowAction.status.in_(UNSETTLED_SCHEDULED_STATUSES),
            )
        ) or 0

    def finalize_if_settled(self, execution_id: int) -> bool:
        """Complete the execution and roll up workflow counters once nothing is pending."""
        execution = self.db.get(WorkflowExecution, execution_id)
        if execution.status != ExecutionStatus.RUNNING or self._pending_scheduled_count(execution_id):
            return False

        execution_state_machine.assert_transition(execution.status.value, ExecutionStatus.COMPLETED.value)
        now = utcnow()
        execution.status = ExecutionStatus.COMPLETED
        execution.completed_at = now
        succeeded = execution.actions_failed == 0
        self._roll_up(execution.workflow_id, succeeded, now)
        self.commit()

        logger.info(
            "workflow.execution_completed",
            extra={
                "event": "workflow.execution_completed",
                "workflow_id": execution.workflow_id,
                "lead_id": execution.lead_id,
                "execution_id": execution_id,
                "actions_executed": execution.actions_executed,
                "actions_succeeded": execution.actions_succeeded,
                "actions_failed": execution.actions_failed,
            },
        )
        return True

    def _roll_up(self, workflow_id: int, succeeded: bool, now: datetime) -> None:
        self.db.execute(
            update(Workflow)
            .where(Workflow.id == workflow_id)
            .values(
                execution_count=Workflow.execution_count + 1,
                success_count=Workflow.success_count + (1 if succeeded else 0),
                failure_count=Workflow.failure_count + (0 if succeeded else 1),
                last_executed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        workflow = self.db.get(Workflow, workflow_id)
        if workflow is not None:
            self.db.expire(workflow)

    def reap_stale_executions(self, now: datetime | None = None, timeout_minutes: int | None = None) -> int:
        """Fail executions stuck in ``running`` past the timeout with nothing scheduled.

        A scheduled action claimed by a worker counts as outstanding until its
        claim is older than the timeout; such abandoned claims are failed along
        with their execution.
        """
        now = now or utcnow()
        timeout = timeout_minutes if timeout_minutes is not None else self.config.WORKFLOW_EXECUTION_TIMEOUT_MINUTES
        cutoff = now - timedelta(minutes=timeout)

        outstanding = (
            select(ScheduledWorkflowAction.id)
            .where(
                ScheduledWorkflowAction.execution_id == WorkflowExecution.id,
                or_(
                    ScheduledWorkflowAction.status == ScheduledActionStatus.PENDING,
                    and_(
                        ScheduledWorkflowAction.status == ScheduledActionStatus.RUNNING,
                        ScheduledWorkflowAction.attempted_at >= cutoff,
                    ),
                ),
            )
            .exists()
        )
        stale = list(
            self.db.scalars(
                select(WorkflowExecution).where(
                    WorkflowExecution.status == ExecutionStatus.RUNNING,
                    WorkflowExecution.created_at < cutoff,
                    ~outstanding,
                )
            )
        )

        for execution in stale:
            execution_state_machine.assert_transition(execution.status.value, ExecutionStatus.FAILED.value)
            execution.status = ExecutionStatus.FAILED
            execution.completed_at = now
            execution.execution_log = [
                *(execution.execution_log or []),
                {
                    "status": ActionOutcome.FAILED.value,
                    "error": f"Execution exceeded {timeout} minutes without completing",
                    "reaped": True,
                    "timestamp": now.isoformat(),
                },
            ]
            self.db.execute(
                update(ScheduledWorkflowAction)
                .where(
                    ScheduledWorkflowAction.execution_id == execution.id,
                    ScheduledWorkflowAction.status == ScheduledActionStatus.RUNNING,
                )
                .values(status=ScheduledActionStatus.FAILED, error="Claim abandoned before settling")
                .execution_options(synchronize_session=False)
            )
            self._roll_up(execution.workflow_id, False, now)
            logger.warning(
                "workflow.execution_reaped",
                extra={
                    "event": "workflow.execution_reaped",
                    "workflow_id": execution.workflow_id,
                    "lead_id": execution.lead_id,
                    "execution_id": execution.id,
                },
            )
        self.commit()
        return len(stale)
