"""
BuildWatch Service
=================

Wires the pipeline together: feed poller → dispatcher → notification queue
→ relay → chat transport. Runs until the poller stops.
"""

import asyncio
from typing import Callable, Optional

import click

from .config.settings import BuildWatchSettings
from .delivery.relay import ChatTransport, NotificationRelay
from .delivery.telegram_transport import TelegramTransport
from .github.enricher import PullRequestEnricher
from .ingestion.feed_poller import FeedPoller
from .models import Notification
from .processing.dispatcher import ItemDispatcher
from .utils.logging import get_logger_for_component
from .utils.exceptions import FeedFetchError


class BuildWatchService:
    """Owns the long-lived tasks of the bridge."""

    def __init__(
        self,
        settings: BuildWatchSettings,
        transport: Optional[ChatTransport] = None,
        enricher: Optional[PullRequestEnricher] = None,
        echo: Callable[[str], None] = click.echo,
    ):
        """Initialize the service.

        Args:
            settings: Application settings, built once at startup
            transport: Chat transport (Telegram by default)
            enricher: Pull request lookup (GitHub by default)
            echo: Operator-visible output for relayed messages
        """
        self.settings = settings
        self.logger = get_logger_for_component("service")

        self.transport = transport or TelegramTransport(settings.telegram)
        self.enricher = enricher or PullRequestEnricher(settings.github)
        self.queue: "asyncio.Queue[Notification]" = asyncio.Queue(
            maxsize=settings.dispatch.queue_size
        )

        self.dispatcher = ItemDispatcher(settings.dispatch, self.enricher, self.queue)
        self.relay = NotificationRelay(
            self.queue, self.transport, settings.telegram.channel, echo=echo
        )
        self.poller = FeedPoller(settings.feed, self.dispatcher.dispatch)

    async def connect(self) -> None:
        """Connect the chat transport; failures are fatal to the caller."""
        connect = getattr(self.transport, "connect", None)
        if connect is not None:
            await connect()

    async def _close_transport(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def run(self) -> Optional[FeedFetchError]:
        """Run the bridge until the feed poller stops.

        Returns:
            The feed error that ended polling

        Raises:
            ChatTransportError: If the initial chat connection fails
        """
        await self.connect()
        try:
            async with self.enricher:
                relay_task = asyncio.create_task(self.relay.run())
                try:
                    error = await self.poller.run()
                    # Let the relay forward whatever the last batch enqueued
                    await self.queue.join()
                finally:
                    relay_task.cancel()
                    await asyncio.gather(relay_task, return_exceptions=True)
        finally:
            await self._close_transport()

        self.logger.info(f"Bridge stopped after relaying {self.relay.relayed_count} notifications")
        return error
