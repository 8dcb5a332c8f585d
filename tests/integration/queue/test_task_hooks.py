from __future__ import annotations

from leadflow.tasks.celery_app import celery_app
from leadflow.tasks.hooks import after_task, before_task


def test_hook_payloads_carry_task_context():
    context = {"lead_id": 7, "trace_id": "abc123"}

    start = before_task("leadflow.scoring.score_lead", context)
    finish = after_task("leadflow.scoring.score_lead", context, "succeeded", score=72)

    assert start["event"] == "task.start"
    assert start["lead_id"] == 7
    assert start["trace_id"] == "abc123"
    assert finish["event"] == "task.finish"
    assert finish["status"] == "succeeded"
    assert finish["score"] == 72
    assert finish["workflow_id"] is None


def test_beat_schedule_covers_periodic_automation():
    scheduled = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}

    assert scheduled == {
        "leadflow.workflows.dispatch_due_actions",
        "leadflow.workflows.reap_stale_executions",
        "leadflow.scoring.recalculate_all",
    }
    assert celery_app.conf.task_serializer == "json"


def test_worker_signals_install_json_logging_and_check_database(monkeypatch):
    import logging

    import leadflow.tasks.celery_app as celery_module
    from leadflow.core.logging_config import JsonFormatter

    root = logging.getLogger()
    level, before = root.level, list(root.handlers)
    checks = []
    monkeypatch.setattr(celery_module, "validate_startup_config", lambda: checks.append("db"))

    try:
        celery_module._configure_logging()
        celery_module._validate_startup(sender=None)
        assert any(isinstance(handler.formatter, JsonFormatter) for handler in root.handlers)
    finally:
        for handler in list(root.handlers):
            if handler not in before:
                root.removeHandler(handler)
        root.setLevel(level)

    assert checks == ["db"]
