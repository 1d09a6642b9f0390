"""
Mail sender component.

Delivers rendered notifications over SMTP. The HTML body travels as bytes
with base64 transfer encoding so long unbroken diff lines are never
re-wrapped on the way.
"""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from notifier.models.notification import MailMessage, RenderedNotification
from notifier.utils.logging import get_logger
from notifier.utils.resilience import retry_with_backoff

logger = get_logger(__name__)

TRANSIENT_SMTP_ERRORS = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    ConnectionError,
    TimeoutError,
)


class DeliveryFailure(Exception):
    """The notification could not be handed to the mail server."""
    pass


class MailSender:
    """Sends notification emails through a configured SMTP server."""

    def __init__(
        self,
        sender: str,
        recipient: str,
        host: str = "localhost",
        port: int = 25,
        secure: bool = False,
        starttls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the sender.

        Args:
            sender: From address
            recipient: To address
            host: SMTP host
            port: SMTP port
            secure: Connect with implicit TLS (SMTPS)
            starttls: Upgrade a plain connection with STARTTLS
            username: Login user (login skipped when unset)
            password: Login password
            timeout: Socket timeout in seconds
        """
        self.sender = sender
        self.recipient = recipient
        self.host = host
        self.port = port
        self.secure = secure
        self.starttls = starttls
        self.username = username
        self.password = password
        self.timeout = timeout

    def compose(self, notification: RenderedNotification) -> MailMessage:
        return MailMessage(
            sender=self.sender,
            recipient=self.recipient,
            subject=notification.subject,
            html_body=notification.html_body.encode("utf-8"),
        )

    @staticmethod
    def build_message(message: MailMessage) -> EmailMessage:
        """Build the MIME message; the HTML part is attached from bytes."""
        email = EmailMessage()
        email["From"] = message.sender
        email["To"] = message.recipient
        email["Subject"] = message.subject
        email.set_content(
            message.html_body,
            maintype="text",
            subtype="html",
            cte="base64",
            params={"charset": "utf-8"},
        )
        return email

    def _open_connection(self) -> smtplib.SMTP:
        if self.secure:
            return smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=ssl.create_default_context()
            )
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def _deliver(self, email: EmailMessage) -> None:
        with self._open_connection() as smtp:
            if self.starttls and not self.secure:
                smtp.starttls(context=ssl.create_default_context())
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(email)

    @retry_with_backoff(max_retries=3, base_delay=1.0, exceptions=TRANSIENT_SMTP_ERRORS)
    async def _deliver_with_retry(self, email: EmailMessage) -> None:
        await asyncio.to_thread(self._deliver, email)

    async def send(self, message: MailMessage) -> None:
        """
        Send one message.

        Raises:
            DeliveryFailure: If the server rejected the message or stayed unreachable
        """
        logger.info(
            f"Sending email from={message.sender} to={message.recipient}: {message.subject}"
        )
        try:
            await self._deliver_with_retry(self.build_message(message))
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryFailure(f"Failed to send email '{message.subject}': {e}") from e

    async def send_notification(self, notification: RenderedNotification) -> MailMessage:
        """Compose and send ``notification``; returns what was sent."""
        message = self.compose(notification)
        await self.send(message)
        return message


def get_mail_sender() -> MailSender:
    """
    Factory function to create MailSender with settings from config.

    Raises:
        ConfigurationError: If sender or recipient is not configured
    """
    from notifier.config import settings, require_email_addresses

    require_email_addresses(settings)
    return MailSender(
        sender=settings.email_from,
        recipient=settings.email_to,
        host=settings.smtp_host,
        port=settings.smtp_port,
        secure=settings.smtp_secure,
        starttls=settings.smtp_starttls,
        username=settings.smtp_username,
        password=settings.smtp_password,
        timeout=settings.smtp_timeout_seconds,
    )
