from __future__ import annotations

import pytest

from leadflow.core.config import get_config
from leadflow.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _fresh_config():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_defaults_enable_sandbox_and_delayed_actions(monkeypatch):
    for name in ("EMAIL_SANDBOX_MODE", "WORKFLOW_DELAYED_ACTIONS_ENABLED", "WORKFLOW_EXECUTION_TIMEOUT_MINUTES"):
        monkeypatch.delenv(name, raising=False)

    config = get_config("development")

    assert config.EMAIL_SANDBOX_MODE is True
    assert config.WORKFLOW_DELAYED_ACTIONS_ENABLED is True
    assert config.WORKFLOW_EXECUTION_TIMEOUT_MINUTES == 30
    assert config.is_production is False


def test_production_forces_debug_off(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("EMAIL_SANDBOX_MODE", "true")

    assert get_config("production").DEBUG is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DATABASE_URL", "mysql://db/leadflow"),
        ("LOG_LEVEL", "chatty"),
        ("WORKFLOW_EXECUTION_TIMEOUT_MINUTES", "0"),
        ("SCHEDULED_ACTION_BATCH_SIZE", "0"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_config("development")


def test_production_without_sandbox_requires_smtp(monkeypatch):
    monkeypatch.setenv("EMAIL_SANDBOX_MODE", "false")
    monkeypatch.delenv("SMTP_SERVER", raising=False)

    with pytest.raises(ConfigurationError, match="SMTP_SERVER"):
        get_config("production")
