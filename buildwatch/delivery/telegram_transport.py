"""
Telegram Chat Transport
======================

Sends plain-text notices to a Telegram chat. A notice is a silent message:
no notification sound and no link preview.
"""

import asyncio
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError, BadRequest, Forbidden, TimedOut, InvalidToken

from ..config.settings import TelegramSettings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ChatTransportError, ErrorCode


class TelegramTransport:
    """Telegram bot wrapper used by the relay."""

    def __init__(self, settings: TelegramSettings, bot: Optional[Bot] = None, retries: int = 2):
        """Initialize transport.

        Args:
            settings: Bot token and target channel
            bot: Existing bot instance (created from the token otherwise)
            retries: Attempts per notice on timeouts
        """
        self.settings = settings
        self.bot = bot or Bot(token=settings.bot_token)
        self.retries = retries
        self.logger = get_logger_for_component("telegram", channel=settings.channel)
        self.connected = False

    async def connect(self) -> None:
        """Perform the initial handshake with Telegram.

        Raises:
            ChatTransportError: If the bot cannot reach Telegram or the token is rejected
        """
        try:
            await self.bot.initialize()
        except InvalidToken as e:
            raise ChatTransportError(
                "Invalid bot token",
                channel=self.settings.channel,
                error_code=ErrorCode.CHAT_CONNECTION_FAILED,
                recoverable=False,
            ) from e
        except TelegramError as e:
            raise ChatTransportError(
                f"Cannot connect to Telegram: {e}",
                channel=self.settings.channel,
                error_code=ErrorCode.CHAT_CONNECTION_FAILED,
                recoverable=False,
            ) from e

        self.connected = True
        self.logger.info(f"Connected to Telegram as @{self.bot.username}")

    async def close(self) -> None:
        if self.connected:
            await self.bot.shutdown()
            self.connected = False

    async def send_notice(self, channel: str, text: str) -> None:
        """Send a silent plain-text message.

        Raises:
            ChatTransportError: If Telegram rejects the message or keeps timing out
        """
        for attempt in range(self.retries):
            try:
                await self.bot.send_message(
                    chat_id=channel,
                    text=text,
                    disable_notification=True,
                    disable_web_page_preview=True,
                )
                return

            except (BadRequest, Forbidden) as e:
                # Invalid chat, or the bot was removed from it
                raise ChatTransportError(str(e), channel=channel, recoverable=False) from e

            except TimedOut as e:
                self.logger.warning(f"Timeout sending to {channel} (attempt {attempt + 1}): {e}")
                if attempt < self.retries - 1:
                    await asyncio.sleep(2 ** attempt)

            except TelegramError as e:
                raise ChatTransportError(str(e), channel=channel) from e

            except Exception as e:
                raise ChatTransportError(
                    f"Unexpected error sending to {channel}: {e!r}", channel=channel
                ) from e

        raise ChatTransportError(
            f"Timed out after {self.retries} attempts", channel=channel
        )
