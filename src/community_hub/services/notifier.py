"""Outbound email delivery for OTPs and status messages.

The community services only depend on `Notifier.send`, which reports success
as a boolean and never raises for delivery problems.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from functools import lru_cache
from typing import Protocol

from community_hub.core.settings import Settings, settings

# Configure logger for this module
logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Contract for delivering a message to an email address."""

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        """Deliver a message; return False when delivery failed."""
        ...


class SmtpNotifier:
    """Deliver HTML email through an SMTP relay."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or settings

    def build_message(self, to_email: str, subject: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.config.smtp_from
        msg["To"] = to_email
        msg.set_content("This message requires an HTML-capable email client.")
        msg.add_alternative(html_body, subtype="html")
        return msg

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        if not self.config.smtp_host:
            logger.warning("SMTP host not configured; dropping email to %s", to_email)
            return False

        msg = self.build_message(to_email, subject, html_body)
        try:
            with smtplib.SMTP(
                self.config.smtp_host,
                self.config.smtp_port,
                timeout=self.config.smtp_timeout_seconds,
            ) as client:
                if self.config.smtp_use_tls:
                    client.starttls()
                if self.config.smtp_user:
                    client.login(self.config.smtp_user, self.config.smtp_password or "")
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            return False
        return True


class LoggingNotifier:
    """Development notifier that writes messages to the log instead of sending."""

    def __init__(self) -> None:
        self.outbox: list[tuple[str, str, str]] = []

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        self.outbox.append((to_email, subject, html_body))
        logger.info("[dev-mail] to=%s subject=%s body=%s", to_email, subject, html_body)
        return True


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    """Return the process-wide notifier chosen from settings."""
    if settings.mail_enabled:
        return SmtpNotifier()
    return LoggingNotifier()


def render_otp_email(heading: str, otp: str, ttl_minutes: int) -> str:
    """Render the HTML body carrying a one-time passcode."""
    return (
        f"<h2>{heading}</h2>"
        f"<p>Your one-time passcode is: <strong>{otp}</strong></p>"
        f"<p>This code expires in {ttl_minutes} minutes. "
        "If you did not expect this email, you can ignore it.</p>"
    )
