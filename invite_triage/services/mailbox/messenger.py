"""
Outbound messages: SMTP for real runs, console for dry runs.
"""
from __future__ import annotations

import os
import smtplib
from datetime import datetime, timezone
from email.mime.text import MIMEText
from email.utils import format_datetime, formataddr, make_msgid
from typing import Optional

from invite_triage.config.exceptions import ConfigError, PipelineError
from invite_triage.utils.console import console
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)


class SmtpMessenger:
    """Send plain-text mail via SMTP (STARTTLS)."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "Job mail triage",
        timeout: int = 30,
    ):
        self.smtp_host = smtp_host or os.getenv("SMTP_HOST")
        self.smtp_port = smtp_port or int(os.getenv("SMTP_PORT", "587"))
        self.smtp_username = smtp_username or os.getenv("SMTP_USERNAME")
        self.smtp_password = smtp_password or os.getenv("SMTP_PASSWORD")
        self.from_email = from_email or os.getenv("FROM_EMAIL", self.smtp_username or "")
        self.from_name = from_name
        self.timeout = timeout

        missing = [
            name
            for name, value in (
                ("SMTP_HOST", self.smtp_host),
                ("SMTP_USERNAME", self.smtp_username),
                ("SMTP_PASSWORD", self.smtp_password),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"SMTP not configured, missing: {', '.join(missing)}")

    def send(self, recipient: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = recipient
        msg["Subject"] = subject
        domain = self.from_email.split("@")[-1] if "@" in self.from_email else None
        msg["Message-ID"] = make_msgid(domain=domain)
        msg["Date"] = format_datetime(datetime.now(timezone.utc))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg, from_addr=self.from_email, to_addrs=[recipient])
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending to %s: %s", recipient, e)
            raise PipelineError(f"Failed to send '{subject}' to {recipient}: {e}") from e

        logger.info("Sent '%s' to %s", subject, recipient)


class ConsoleMessenger:
    """Dry-run messenger: prints messages instead of sending them."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append((recipient, subject, body))
        console.outbound_message(recipient, subject, body)
        logger.info("[DRY RUN] Would send '%s' to %s", subject, recipient)


__all__ = ["SmtpMessenger", "ConsoleMessenger"]
