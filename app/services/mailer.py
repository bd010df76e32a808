"""Outgoing mail over SMTP (aiosmtplib). Used for password reset codes."""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode
from typing import TYPE_CHECKING

import aiosmtplib

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot receive a message."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class EmailSender:
    """Async SMTP sender configured from Settings."""

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    def _build_message(self, to_email: str, subject: str, text: str, html: str | None) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = f"{self.settings.EMAIL_FROM_NAME} <{self.settings.EMAIL_FROM}>"
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            message.attach(MIMEText(html, "html", "utf-8"))
        return message

    async def send(self, to_email: str, subject: str, text: str, html: str | None = None) -> bool:
        """Send a message; returns False (and logs) when SMTP is not configured."""
        if not self.is_configured:
            logger.warning("SMTP_HOST not set; skipping email", extra={"subject": subject})
            return False
        password = self.settings.SMTP_PASSWORD.get_secret_value() if self.settings.SMTP_PASSWORD else None
        try:
            await aiosmtplib.send(
                self._build_message(to_email, subject, text, html),
                hostname=self.settings.SMTP_HOST,
                port=self.settings.SMTP_PORT,
                username=self.settings.SMTP_USER or None,
                password=password,
                start_tls=self.settings.SMTP_USE_TLS,
                timeout=self.settings.SMTP_TIMEOUT_SEC,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("Email delivery failed", extra={"subject": subject, "reason": str(e)[:200]})
            raise EmailDeliveryError("Email delivery failed.", cause=e) from e
        logger.info("Email sent", extra={"subject": subject})
        return True

    async def send_reset_code(self, to_email: str, username: str, code: str, ttl_minutes: int) -> bool:
        reset_link = f"{self.settings.FRONTEND_URL}/reset-password?{urlencode({'email': to_email})}"
        text = (
            f"Hello {username},\n\n"
            "We received a request to reset your Youth4Development dashboard password.\n\n"
            f"Your one-time code: {code}\n"
            f"This code expires in {ttl_minutes} minutes.\n\n"
            f"Reset your password at: {reset_link}\n\n"
            "If you did not request this, you can ignore this email."
        )
        html = (
            f"<p>Hello {username},</p>"
            "<p>We received a request to reset your Youth4Development dashboard password.</p>"
            f"<p>Your one-time code: <strong>{code}</strong><br>"
            f"This code expires in {ttl_minutes} minutes.</p>"
            f'<p><a href="{reset_link}">Reset password</a></p>'
            "<p>If you did not request this, you can ignore this email.</p>"
        )
        return await self.send(to_email, "Password Reset Request - Youth4Development", text, html)
