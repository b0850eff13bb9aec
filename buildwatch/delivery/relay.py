"""
Notification Relay
=================

Single consumer of the notification queue. Each notification is echoed to
stdout and sent to the chat channel in the order it was received.
"""

import asyncio
from typing import Callable, Protocol

import click

from ..models import Notification
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ChatTransportError, handle_exception


class ChatTransport(Protocol):
    async def send_notice(self, channel: str, text: str) -> None: ...


class NotificationRelay:
    """Forwards queued notifications to the chat transport."""

    def __init__(
        self,
        queue: "asyncio.Queue[Notification]",
        transport: ChatTransport,
        channel: str,
        echo: Callable[[str], None] = click.echo,
    ):
        """Initialize relay.

        Args:
            queue: Queue filled by the dispatcher
            transport: Chat transport to send notices with
            channel: Target channel
            echo: Operator-visible output for each message
        """
        self.queue = queue
        self.transport = transport
        self.channel = channel
        self.echo = echo
        self.logger = get_logger_for_component("relay", channel=channel)
        self.relayed_count = 0

    async def relay_one(self, notification: Notification) -> None:
        message = notification.render()
        self.echo(message)
        try:
            await self.transport.send_notice(self.channel, message)
        except ChatTransportError as e:
            self.logger.warning(f"Dropped notice for PR#{notification.id}: {e}", extra=e.to_dict())
            return
        except Exception as e:
            handle_exception(e, self.logger, "send_notice", {"pull_number": notification.id})
            return
        self.relayed_count += 1

    async def run(self) -> None:
        """Drain the queue for the lifetime of the process."""
        self.logger.info(f"Relaying notifications to {self.channel}")
        while True:
            notification = await self.queue.get()
            try:
                await self.relay_one(notification)
            finally:
                self.queue.task_done()
