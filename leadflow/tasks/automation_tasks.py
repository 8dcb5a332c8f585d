from __future__ import annotations

import logging
from typing import Any

from leadflow.database.db import get_db_session
from leadflow.orchestration import scheduler
from leadflow.orchestration.workflow_engine import WorkflowEngine
from leadflow.services.scoring_service import ScoringService
from leadflow.tasks.celery_app import celery_app
from leadflow.tasks.hooks import after_task, before_task
from leadflow.utils.ids import new_trace_id

logger = logging.getLogger(__name__)


def _start(task_name: str, **context: Any) -> dict[str, Any]:
    context["trace_id"] = new_trace_id()
    logger.info("task.start", extra=before_task(task_name=task_name, context=context))
    return context


def _finish(task_name: str, context: dict[str, Any], status: str, **fields: Any) -> None:
    payload = after_task(task_name=task_name, context=context, status=status, **fields)
    if status == "failed":
        logger.error("task.finish", extra=payload)
    else:
        logger.info("task.finish", extra=payload)


@celery_app.task(name="leadflow.workflows.execute")
def execute_workflows_task(
    trigger: str,
    lead_id: int,
    actor_id: int | None = None,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Fire a trigger for a lead off the request path."""
    task_name = "leadflow.workflows.execute"
    context = _start(task_name, lead_id=lead_id)
    try:
        with get_db_session() as session:
            executed = WorkflowEngine(db=session).execute_workflows(trigger, lead_id, actor_id=actor_id, data=data)
    except Exception:
        _finish(task_name, context, "failed")
        logger.exception("workflow_task.failed", extra={"event": "workflow_task.failed", "lead_id": lead_id})
        raise
    _finish(task_name, context, "succeeded", executed=executed)
    return {"status": "succeeded", "trigger": trigger, "lead_id": lead_id, "executed": executed}


@celery_app.task(name="leadflow.workflows.dispatch_due_actions")
def dispatch_due_actions_task(limit: int | None = None) -> dict[str, Any]:
    task_name = "leadflow.workflows.dispatch_due_actions"
    context = _start(task_name)
    with get_db_session() as session:
        summary = scheduler.run_due_actions(WorkflowEngine(db=session), limit=limit)
    _finish(task_name, context, "succeeded", **summary)
    return {"status": "succeeded", **summary}


@celery_app.task(name="leadflow.workflows.reap_stale_executions")
def reap_stale_executions_task(timeout_minutes: int | None = None) -> dict[str, Any]:
    task_name = "leadflow.workflows.reap_stale_executions"
    context = _start(task_name)
    with get_db_session() as session:
        reaped = scheduler.reap_stale_executions(WorkflowEngine(db=session), timeout_minutes=timeout_minutes)
    _finish(task_name, context, "succeeded", reaped=reaped)
    return {"status": "succeeded", "reaped": reaped}


@celery_app.task(name="leadflow.scoring.score_lead")
def score_lead_task(lead_id: int) -> dict[str, Any]:
    task_name = "leadflow.scoring.score_lead"
    context = _start(task_name, lead_id=lead_id)
    with get_db_session() as session:
        result = ScoringService(db=session).score(lead_id)
    _finish(task_name, context, "succeeded", score=result.score)
    return {
        "status": "succeeded",
        "lead_id": lead_id,
        "score": result.score,
        "urgency": result.urgency.value,
        "reason": result.reason,
    }


@celery_app.task(name="leadflow.scoring.recalculate_all")
def recalculate_scores_task() -> dict[str, Any]:
    """Rescore every unconverted lead; per-lead failures are counted, not raised."""
    task_name = "leadflow.scoring.recalculate_all"
    context = _start(task_name)
    with get_db_session() as session:
        summary = ScoringService(db=session).recalculate_all()
    _finish(task_name, context, "succeeded", **summary)
    return {"status": "succeeded", **summary}
