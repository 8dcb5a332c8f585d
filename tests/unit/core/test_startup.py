from __future__ import annotations

import pytest

import leadflow.core.startup as startup_module


class _Cfg:
    ENV = "production"
    WORKFLOW_DELAYED_ACTIONS_ENABLED = True

    @property
    def is_production(self) -> bool:
        return True


def test_startup_raises_when_database_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg())
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    with pytest.raises(RuntimeError, match="Database connectivity check failed"):
        startup_module.validate_startup_config()


def test_startup_warns_on_sqlite_in_production(monkeypatch, caplog):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg())
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: True)
    monkeypatch.setattr(startup_module, "get_active_database_url", lambda: "sqlite:///./leadflow.db")

    with caplog.at_level("WARNING", logger="leadflow.core.startup"):
        startup_module.validate_startup_config()

    assert "startup.production.sqlite_detected" in caplog.text
