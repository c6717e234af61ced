"""Email sender."""

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from statuspage.config import get_app_settings
from statuspage.notifications.models import ChannelType, Notification

logger = logging.getLogger(__name__)


@dataclass
class EmailConfig:
    """SMTP configuration; an empty host turns the sender into a log stub."""

    host: str = ""
    port: int = 25
    username: str = ""
    password: str = ""
    from_address: str = "statuspage@localhost"
    timeout: float = 30.0

    @classmethod
    def from_settings(cls) -> "EmailConfig":
        settings = get_app_settings()
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_address=settings.SMTP_FROM_ADDRESS,
        )


class EmailSender:
    """Sends notifications by email over SMTP."""

    def __init__(self, config: Optional[EmailConfig] = None):
        self.config = config or EmailConfig.from_settings()

    @property
    def channel_type(self) -> str:
        return ChannelType.EMAIL.value

    @property
    def is_configured(self) -> bool:
        return bool(self.config.host)

    async def send(self, notification: Notification) -> None:
        """Send ``notification`` to its address.

        Raises:
            smtplib.SMTPException: If the server rejects the message
            OSError: If the server cannot be reached
        """
        if not self.is_configured:
            logger.info(
                "Email sender not configured, logging notification",
                extra={"to": notification.to, "subject": notification.subject},
            )
            return

        message = EmailMessage()
        message["From"] = self.config.from_address
        message["To"] = notification.to
        message["Subject"] = notification.subject
        message.set_content(notification.body)

        await asyncio.to_thread(self._deliver, message)
        logger.info("Email sent", extra={"to": notification.to})

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout) as smtp:
            if self.config.username:
                smtp.starttls()
                smtp.login(self.config.username, self.config.password)
            smtp.send_message(message)
