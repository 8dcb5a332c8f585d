"""Periodic drivers for delayed workflow actions and stuck executions."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select

from leadflow.models import ScheduledActionStatus, ScheduledWorkflowAction
from leadflow.models.base import utcnow
from leadflow.orchestration.workflow_engine import WorkflowEngine

logger = logging.getLogger(__name__)


def run_due_actions(engine: WorkflowEngine, now: datetime | None = None, limit: int | None = None) -> dict[str, int]:
    """Run pending scheduled actions whose due time has passed, oldest first."""
    now = now or utcnow()
    batch_size = limit if limit is not None else engine.config.SCHEDULED_ACTION_BATCH_SIZE
    due_ids = list(
        engine.db.scalars(
            select(ScheduledWorkflowAction.id)
            .where(
                ScheduledWorkflowAction.status == ScheduledActionStatus.PENDING,
                ScheduledWorkflowAction.due_at <= now,
            )
            .order_by(ScheduledWorkflowAction.due_at, ScheduledWorkflowAction.id)
            .limit(batch_size)
        )
    )

    summary = {"due": len(due_ids), "succeeded": 0, "failed": 0}
    for scheduled_id in due_ids:
        try:
            result = engine.run_scheduled_action(scheduled_id, now=now)
        except Exception:
            engine.rollback()
            summary["failed"] += 1
            logger.exception(
                "scheduler.action_error",
                extra={"event": "scheduler.action_error", "scheduled_action_id": scheduled_id},
            )
            continue
        if result is None:
            continue
        summary["succeeded" if result.success else "failed"] += 1

    logger.info("scheduler.due_actions_processed", extra={"event": "scheduler.due_actions_processed", **summary})
    return summary


def reap_stale_executions(
    engine: WorkflowEngine,
    now: datetime | None = None,
    timeout_minutes: int | None = None,
) -> int:
    reaped = engine.reap_stale_executions(now=now, timeout_minutes=timeout_minutes)
    if reaped:
        logger.warning("scheduler.executions_reaped", extra={"event": "scheduler.executions_reaped", "count": reaped})
    return reaped
