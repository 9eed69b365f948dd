"""Outbound e-mail over SMTP."""

import asyncio
import smtplib
from collections import deque
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

from convops.core.config import Settings, settings
from convops.core.exceptions import DeliveryError

logger = structlog.get_logger()

# Messages kept for inspection when no relay is configured in development
OUTBOX_LIMIT = 100


class Mailer:
    """Sends HTML e-mail through the configured SMTP relay."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or settings
        self.outbox: deque[dict[str, str]] = deque(maxlen=OUTBOX_LIMIT)

    def _send_sync(self, to_address: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.config.mail_from
        msg["To"] = to_address
        msg.attach(MIMEText(html, "html"))

        smtp_cls = smtplib.SMTP_SSL if self.config.smtp_use_ssl else smtplib.SMTP
        with smtp_cls(self.config.smtp_host, self.config.smtp_port, timeout=15) as server:
            if not self.config.smtp_use_ssl:
                server.starttls()
            if self.config.smtp_username:
                server.login(self.config.smtp_username, self.config.smtp_password)
            server.sendmail(self.config.mail_from, [to_address], msg.as_string())

    async def send(self, to_address: str, subject: str, html: str) -> None:
        """Send one message.

        Raises:
            DeliveryError: If the relay rejects or cannot be reached
        """
        if not self.config.mail_configured:
            logger.warning("Mail relay not configured, message not sent", to=to_address, subject=subject)
            if self.config.is_development:
                self.outbox.append({"to": to_address, "subject": subject, "html": html})
            return

        try:
            await asyncio.to_thread(self._send_sync, to_address, subject, html)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send e-mail", to=to_address, error=str(e))
            raise DeliveryError("Failed to send e-mail", recipient=to_address) from e

        logger.info("E-mail sent", to=to_address, subject=subject)

    async def send_password_reset(self, to_address: str, reset_url: str) -> None:
        html = (
            "<p>You requested a password reset.</p>"
            f'<p><a href="{reset_url}">Click here to reset your password</a></p>'
            f"<p>This link expires in {self.config.password_reset_ttl_minutes} minutes. "
            "If you did not request a reset you can ignore this e-mail.</p>"
        )
        await self.send(to_address, "Password Reset Request", html)


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """Get or create the mailer singleton."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer()
    return _mailer
