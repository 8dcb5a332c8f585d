from __future__ import annotations

import smtplib
from dataclasses import replace

from leadflow.services.email_sender import EmailMessage, SmtpEmailSender


def _message() -> EmailMessage:
    return EmailMessage(to="jordan.lee@example.com", subject="Welcome", html_body="<p>Hi</p>")


def test_sandbox_mode_returns_synthetic_id(config):
    result = SmtpEmailSender(config).send(_message())

    assert result.success is True
    assert result.id.startswith("email-")


def test_missing_smtp_server_is_a_failure(config):
    sender = SmtpEmailSender(replace(config, EMAIL_SANDBOX_MODE=False, SMTP_SERVER=None))

    result = sender.send(_message())

    assert result.success is False
    assert result.error == "SMTP server is not configured"


def test_smtp_errors_become_failed_results(config, monkeypatch):
    def _refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(smtplib, "SMTP", _refuse)
    sender = SmtpEmailSender(replace(config, EMAIL_SANDBOX_MODE=False, SMTP_SERVER="smtp.example.com"))

    result = sender.send(_message())

    assert result.success is False
    assert "busy" in result.error
