"""Telegram sender.

Sends notifications through the Telegram Bot API; the channel target is
the chat id.
"""

import html
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from statuspage.config import get_app_settings
from statuspage.notifications.models import ChannelType, Notification

logger = logging.getLogger(__name__)


@dataclass
class TelegramConfig:
    """Telegram configuration; an empty token turns the sender into a log stub."""

    bot_token: str = ""
    api_base: str = "https://api.telegram.org"
    timeout: float = 10.0
    parse_mode: str = "HTML"

    @classmethod
    def from_settings(cls) -> "TelegramConfig":
        settings = get_app_settings()
        return cls(
            bot_token=settings.TELEGRAM_BOT_TOKEN,
            api_base=settings.TELEGRAM_API_BASE,
            timeout=settings.TELEGRAM_TIMEOUT,
        )


class TelegramSendError(Exception):
    """The Bot API did not accept the message."""


class TelegramSender:
    """Sends notifications to Telegram chats."""

    def __init__(
        self,
        config: Optional[TelegramConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or TelegramConfig.from_settings()
        self._client = client

    @property
    def channel_type(self) -> str:
        return ChannelType.TELEGRAM.value

    @property
    def is_configured(self) -> bool:
        return bool(self.config.bot_token)

    def format_message(self, notification: Notification) -> str:
        """Bold subject line followed by the body, escaped for HTML parse mode."""
        subject = html.escape(notification.subject, quote=False)
        body = html.escape(notification.body, quote=False)
        return f"<b>{subject}</b>\n\n{body}"

    async def send(self, notification: Notification) -> None:
        """Send ``notification`` to its chat id.

        Raises:
            TelegramSendError: If the Bot API rejects the message
            httpx.HTTPError: On transport failures
        """
        if not self.is_configured:
            logger.info(
                "Telegram sender not configured, logging notification",
                extra={"to": notification.to, "subject": notification.subject},
            )
            return

        url = f"{self.config.api_base}/bot{self.config.bot_token}/sendMessage"
        payload = {
            "chat_id": notification.to,
            "text": self.format_message(notification),
            "parse_mode": self.config.parse_mode,
        }

        if self._client is not None:
            response = await self._client.post(url, json=payload, timeout=self.config.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.post(url, json=payload)

        if response.status_code != 200 or not response.json().get("ok"):
            raise TelegramSendError(f"Telegram API returned {response.status_code}")
        logger.info("Telegram message sent", extra={"to": notification.to})
