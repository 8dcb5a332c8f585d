"""Email collaborator: message contract plus the SMTP implementation."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Protocol

from leadflow.core.config import Config, get_config
from leadflow.utils.ids import new_email_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html_body: str
    plain_text_body: str | None = None
    to_name: str | None = None


@dataclass(frozen=True)
class EmailResult:
    success: bool
    id: str | None = None
    error: str | None = None


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> EmailResult: ...


class SmtpEmailSender:
    """Send transactional email over SMTP; sandbox mode only logs."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    def send(self, message: EmailMessage) -> EmailResult:
        if self.config.EMAIL_SANDBOX_MODE:
            email_id = new_email_id()
            logger.info(
                "email.sandbox_send",
                extra={"event": "email.sandbox_send", "to_email": message.to, "email_id": email_id},
            )
            return EmailResult(success=True, id=email_id)

        if not self.config.SMTP_SERVER:
            logger.warning("email.smtp_not_configured", extra={"event": "email.smtp_not_configured"})
            return EmailResult(success=False, error="SMTP server is not configured")

        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = self.config.EMAIL_FROM
        mime["To"] = formataddr((message.to_name or "", message.to))
        mime["Message-ID"] = make_msgid()
        if message.plain_text_body:
            mime.attach(MIMEText(message.plain_text_body, "plain"))
        mime.attach(MIMEText(message.html_body, "html"))

        try:
            with smtplib.SMTP(self.config.SMTP_SERVER, self.config.SMTP_PORT) as server:
                server.starttls()
                if self.config.SMTP_USERNAME:
                    server.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD or "")
                server.send_message(mime)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("email.send_failed", extra={"event": "email.send_failed", "to_email": message.to})
            return EmailResult(success=False, error=str(exc))

        return EmailResult(success=True, id=mime["Message-ID"])
