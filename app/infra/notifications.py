"""
Reply delivery.

Sends plain-text replies to the original sender over SMTP (SSL),
threaded onto the inbound message with In-Reply-To / References.
"""

import asyncio
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage
from functools import partial
from typing import Optional

from app.config import get_settings

logger = logging.getLogger(__name__)


class ReplySender(ABC):
    """Outbound reply channel."""

    @abstractmethod
    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        in_reply_to: Optional[str] = None,
    ) -> bool:
        """Send a reply.

        Returns:
            True if the message was handed to the transport
        """


class SmtpReplySender(ReplySender):
    """ReplySender backed by an SMTP account (e.g. Gmail app password)."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username or settings.email_user
        self.password = password or settings.email_app_password
        self.timeout = timeout or settings.smtp_timeout

    def build_message(
        self,
        to: str,
        subject: str,
        body: str,
        in_reply_to: Optional[str] = None,
    ) -> EmailMessage:
        """Build the outgoing message."""
        message = EmailMessage()
        message["From"] = self.username
        message["To"] = to
        message["Subject"] = subject
        if in_reply_to:
            message["In-Reply-To"] = in_reply_to
            message["References"] = in_reply_to
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        """Blocking SMTP send."""
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
            server.login(self.username, self.password)
            server.send_message(message)

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        in_reply_to: Optional[str] = None,
    ) -> bool:
        """Send a reply; failures are logged and reported as False."""
        if not to or not subject or not body:
            logger.error("Reply not sent: to, subject and body are required")
            return False

        if not self.username or not self.password:
            logger.error("Reply not sent: EMAIL_USER and EMAIL_APP_PASSWORD are not configured")
            return False

        message = self.build_message(to, subject, body, in_reply_to)
        logger.info(f"Sending reply to: {to}")

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, partial(self._deliver, message))
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending reply: {e}")
            return False

        logger.info(f"Reply sent to {to}")
        return True


# Singleton
_sender: Optional[SmtpReplySender] = None


def get_reply_sender() -> SmtpReplySender:
    """Get singleton SmtpReplySender."""
    global _sender
    if _sender is None:
        _sender = SmtpReplySender()
    return _sender
