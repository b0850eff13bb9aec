"""
Item Dispatcher
==============

Turns one poll cycle's new feed items into notifications. Each item is
handled by its own task; the burst per cycle is capped to keep the chat
channel from flooding, and the dispatcher returns only after every task
of the batch has finished.
"""

import asyncio
from typing import List, Optional, Protocol

from ..config.settings import DispatchSettings
from ..models import FeedItem, Notification, PullRequestInfo
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ErrorCode, handle_exception
from .link_extractor import extract_pull_number
from .status_classifier import classify_title, is_suppressed


class Enricher(Protocol):
    async def enrich(self, number: int) -> PullRequestInfo: ...


class ItemDispatcher:
    """Bounded fan-out of per-item enrichment tasks."""

    def __init__(
        self,
        settings: DispatchSettings,
        enricher: Enricher,
        queue: "asyncio.Queue[Notification]",
    ):
        """Initialize dispatcher.

        Args:
            settings: Burst limit and suppression policy
            enricher: Pull request metadata lookup, shared by all tasks
            queue: Output queue drained by the relay
        """
        self.settings = settings
        self.enricher = enricher
        self.queue = queue
        self.logger = get_logger_for_component("dispatcher")

    def select_batch(self, items: List[FeedItem]) -> List[FeedItem]:
        """Pick the items to launch this cycle.

        The count is checked after each launch, so the item that takes the
        count past the limit is still launched.
        """
        return items[: self.settings.burst_limit + 1]

    async def dispatch(self, items: List[FeedItem]) -> List[Optional[Notification]]:
        """Handle a batch of new items and wait for all of them.

        Returns:
            Per launched item, the notification sent or None if dropped
        """
        batch = self.select_batch(items)
        if len(batch) < len(items):
            self.logger.info(
                f"Launching {len(batch)} of {len(items)} new items to avoid flooding"
            )

        tasks = [asyncio.create_task(self.process_item(item)) for item in batch]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        notifications: List[Optional[Notification]] = []
        for item, result in zip(batch, results):
            if isinstance(result, BaseException):
                handle_exception(result, self.logger, "process_item", {"item_key": item.key})
                notifications.append(None)
            else:
                notifications.append(result)
        return notifications

    def build_notification(self, item: FeedItem) -> Optional[Notification]:
        """Build the bare notification for an item, or None to drop it."""
        status = classify_title(item.title)

        if not item.links:
            self.logger.debug(f"Skipping {item}: {ErrorCode.EXTRACTION_NO_LINKS.value}")
            return None

        extraction = extract_pull_number(item.content)
        if not extraction.success:
            self.logger.debug(f"Skipping {item}: {extraction.reason.value}")
            return None

        if is_suppressed(status) and self.settings.suppress_aborted:
            self.logger.debug(f"Suppressing aborted build for PR#{extraction.pull_number}")
            return None

        return Notification(id=extraction.pull_number, job_url=item.links[0], status=status)

    async def process_item(self, item: FeedItem) -> Optional[Notification]:
        """Classify, extract, enrich and enqueue a single item."""
        notification = self.build_notification(item)
        if notification is None:
            return None

        info = await self.enricher.enrich(notification.id)
        notification.enrich(info)

        await self.queue.put(notification)
        return notification
