"""Celery application bootstrap."""

from __future__ import annotations

from celery import Celery
from celery.signals import beat_init, setup_logging, worker_init

from leadflow.core.config import get_config
from leadflow.core.logging_config import configure_logging
from leadflow.core.startup import validate_startup_config

config = get_config()

celery_app = Celery(
    "leadflow",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["leadflow.tasks.automation_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "dispatch-due-workflow-actions": {
            "task": "leadflow.workflows.dispatch_due_actions",
            "schedule": 60.0,
        },
        "reap-stale-workflow-executions": {
            "task": "leadflow.workflows.reap_stale_executions",
            "schedule": 300.0,
        },
        "recalculate-lead-scores": {
            "task": "leadflow.scoring.recalculate_all",
            "schedule": config.SCORE_RECALC_INTERVAL_MINUTES * 60.0,
        },
    },
)

# Local/dev convenience: run tasks synchronously when requested.
if config.CELERY_TASK_ALWAYS_EAGER:
    celery_app.conf.task_always_eager = True


@setup_logging.connect
def _configure_logging(**_kwargs) -> None:
    # Connecting this signal stops Celery from installing its own root handlers.
    configure_logging()


@worker_init.connect
@beat_init.connect
def _validate_startup(**_kwargs) -> None:
    validate_startup_config()
