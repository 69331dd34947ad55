"""
Finsolvz Backend — Email Service
=================================

What:  Sends the password-reset email.
How:   smtplib over STARTTLS (Gmail by default), run in the threadpool so the
       event loop is never blocked; transient SMTP/socket failures are retried
       with tenacity (exponential backoff + jitter).

Credentials come from NODEMAILER_EMAIL / NODEMAILER_PASS. Missing credentials
raise EMAIL_CONFIG_MISSING; delivery that still fails after retries raises
EMAIL_SEND_ERROR.
"""

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from starlette.concurrency import run_in_threadpool
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from finsolvz.config import Settings, settings
from finsolvz.exceptions import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Your New Finsolvz Account Password"

_RESET_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <head><title>Password Reset - Finsolvz</title></head>
  <body style="font-family: Arial, sans-serif; color: #1f2937;">
    <h2>Password Reset</h2>
    <p>Hello {name},</p>
    <p>A new password has been generated for your Finsolvz account:</p>
    <p style="font-size: 18px; font-weight: bold; letter-spacing: 1px;">{password}</p>
    <p>Please sign in with it and change it right away.</p>
    <p>If you prefer to choose your own password, use this reset token
       within {ttl} minutes:</p>
    <p><code>{token}</code></p>
    <p>If you did not request this change, contact your administrator.</p>
    <p>The Finsolvz Team</p>
  </body>
</html>
"""


def render_reset_email(name: str, password: str, token: str, ttl_minutes: int) -> str:
    return _RESET_TEMPLATE.format(
        name=html.escape(name),
        password=html.escape(password),
        token=html.escape(token),
        ttl=ttl_minutes,
    )


class EmailService:
    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings

    def _build_message(self, to: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.nodemailer_email
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as smtp:
            smtp.starttls()
            smtp.login(self.config.nodemailer_email, self.config.nodemailer_pass)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, html_body: str) -> None:
        """
        Deliver one HTML email.

        Raises:
            ConfigurationError: EMAIL_CONFIG_MISSING
            EmailDeliveryError: EMAIL_SEND_ERROR after all retry attempts
        """
        if not self.config.nodemailer_email or not self.config.nodemailer_pass:
            raise ConfigurationError(
                message="Email credentials are not configured",
                code="EMAIL_CONFIG_MISSING",
            )

        message = self._build_message(to, subject, html_body)
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((smtplib.SMTPException, OSError)),
                stop=stop_after_attempt(self.config.email_retry_attempts),
                wait=wait_exponential_jitter(initial=1, max=10),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await run_in_threadpool(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to, e)
            raise EmailDeliveryError(cause=e) from e

        logger.info("Email '%s' sent to %s", subject, to)

    async def send_password_reset(self, to: str, name: str, temporary_password: str, reset_token: str) -> None:
        body = render_reset_email(name, temporary_password, reset_token, self.config.reset_token_ttl_minutes)
        await self.send(to, RESET_SUBJECT, body)
