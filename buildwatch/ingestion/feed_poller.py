"""
CI Feed Poller
=============

Polls the CI server's RSS/Atom feed, detects entries that were not present
in the previous document, hands them to the dispatcher and waits for the
feed's own refresh hint before polling again. The first fetch error stops
the loop for good.
"""

import asyncio
import ssl
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set

import aiohttp
import certifi
import feedparser

from ..config.settings import FeedSettings
from ..models import FeedItem
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import FeedFetchError, ErrorCode


ItemHandler = Callable[[List[FeedItem]], Awaitable[Any]]


class PollerState(str, Enum):
    """Feed poller lifecycle."""
    POLLING = "polling"
    STOPPED = "stopped"


@dataclass
class FetchResult:
    """Parsed feed document."""

    feed_url: str
    items: List[FeedItem] = field(default_factory=list)
    ttl_minutes: Optional[int] = None


class FeedPoller:
    """Polls a single feed until a fetch fails."""

    def __init__(self, settings: FeedSettings, handler: ItemHandler):
        """Initialize feed poller.

        Args:
            settings: Feed URL, timeouts and encoding override
            handler: Awaited with each batch of new items
        """
        self.settings = settings
        self.feed_url = str(settings.url)
        self.handler = handler
        self.logger = get_logger_for_component("feed_poller", feed_url=self.feed_url)

        self.state = PollerState.POLLING
        self.last_error: Optional[FeedFetchError] = None
        self.cache_timeout_minutes = settings.cache_timeout_minutes

        self._seen_keys: Set[str] = set()
        self._last_update: Optional[float] = None

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit_per_host=2)
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
        headers = {
            "User-Agent": "BuildWatch/1.0",
            "Accept": "application/atom+xml, application/rss+xml, application/xml, text/xml, */*",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch(self, session: aiohttp.ClientSession) -> FetchResult:
        """Fetch and parse the feed once.

        Raises:
            FeedFetchError: On HTTP, network, timeout or parse failure
        """
        try:
            async with session.get(self.feed_url) as response:
                if response.status != 200:
                    raise FeedFetchError(
                        f"HTTP {response.status}: {response.reason}",
                        feed_url=self.feed_url,
                        error_code=ErrorCode.FEED_HTTP_ERROR,
                    )
                body = await response.text(encoding=self.settings.encoding)

        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Request timeout after {self.settings.request_timeout}s",
                feed_url=self.feed_url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except aiohttp.ClientError as e:
            raise FeedFetchError(
                str(e), feed_url=self.feed_url, error_code=ErrorCode.FEED_NETWORK_ERROR
            ) from e
        except (UnicodeDecodeError, LookupError) as e:
            raise FeedFetchError(
                f"Cannot decode feed body: {e}",
                feed_url=self.feed_url,
                error_code=ErrorCode.FEED_PARSE_ERROR,
            ) from e

        return self.parse(body)

    def parse(self, body: str) -> FetchResult:
        """Parse a feed document into items.

        Raises:
            FeedFetchError: If the document is malformed and holds no entries
        """
        feed_data = feedparser.parse(body)

        if getattr(feed_data, "bozo", False):
            error = getattr(feed_data, "bozo_exception", "Invalid XML structure")
            if not feed_data.entries:
                raise FeedFetchError(
                    f"Feed parse error: {error}",
                    feed_url=self.feed_url,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                )
            self.logger.info(f"Feed has parse warnings but contains entries: {error}")

        items = []
        for entry in feed_data.entries:
            try:
                items.append(self._parse_entry(entry))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                self.logger.warning(
                    f"Failed to parse entry: {e}",
                    extra={"entry_title": entry.get("title", "Unknown")},
                )

        return FetchResult(
            feed_url=self.feed_url,
            items=items,
            ttl_minutes=self._parse_ttl(feed_data.feed.get("ttl")),
        )

    def _parse_entry(self, entry: Any) -> FeedItem:
        title = entry.get("title", "")
        links = [link["href"] for link in entry.get("links", []) if link.get("href")]
        if not links and entry.get("link"):
            links = [entry["link"]]

        key = entry.get("id") or f"{title}|{entry.get('published', entry.get('updated', ''))}"

        return FeedItem(key=key, title=title, links=links, content=self._extract_content(entry))

    def _extract_content(self, entry: Any) -> Optional[str]:
        """Extract the entry body, preferring full content over the summary."""
        content = entry.get("content")
        if isinstance(content, list) and content:
            value = content[0].get("value")
            if value:
                return value

        # feedparser maps RSS <description> onto summary
        summary = entry.get("summary")
        if summary:
            return summary

        return None

    @staticmethod
    def _parse_ttl(value: Any) -> Optional[int]:
        try:
            ttl = int(value)
        except (TypeError, ValueError):
            return None
        return ttl if ttl >= 0 else None

    def select_new_items(self, items: List[FeedItem]) -> List[FeedItem]:
        """Return items absent from the previous document, in feed order.

        Only keys from the latest document are remembered, which bounds
        memory to the feed's size.
        """
        new_items = []
        current_keys: Set[str] = set()
        for item in items:
            if item.key in current_keys:
                continue
            current_keys.add(item.key)
            if item.key not in self._seen_keys:
                new_items.append(item)

        self._seen_keys = current_keys
        return new_items

    def seconds_till_update(self) -> float:
        """Seconds until the feed's cache window expires."""
        if self._last_update is None:
            return 0.0
        expires = self._last_update + self.cache_timeout_minutes * 60
        return max(0.0, expires - time.time())

    def next_poll_delay(self) -> float:
        return max(self.seconds_till_update(), self.settings.min_poll_seconds)

    def _stop(self, error: FeedFetchError) -> None:
        self.state = PollerState.STOPPED
        self.last_error = error
        self.logger.error(f"Feed polling stopped: {error}", extra=error.to_dict())

    async def poll_once(self, session: aiohttp.ClientSession) -> List[FeedItem]:
        """Run one fetch-and-dispatch cycle.

        Returns:
            The new items handed to the handler (empty on failure)
        """
        if self.state is PollerState.STOPPED:
            return []

        try:
            result = await self.fetch(session)
        except FeedFetchError as e:
            self._stop(e)
            return []

        self._last_update = time.time()
        self.cache_timeout_minutes = self.settings.cache_timeout_minutes
        if (
            self.settings.enforce_cache_limit
            and result.ttl_minutes is not None
            and result.ttl_minutes > self.cache_timeout_minutes
        ):
            self.cache_timeout_minutes = result.ttl_minutes

        new_items = self.select_new_items(result.items)
        self.logger.debug(f"Fetched {len(result.items)} items, {len(new_items)} new")

        if new_items:
            await self.handler(new_items)

        return new_items

    async def _wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def run(self) -> Optional[FeedFetchError]:
        """Poll until a fetch fails.

        Returns:
            The error that stopped polling
        """
        self.logger.info(f"Polling feed {self.feed_url}")

        async with self.get_session() as session:
            while self.state is PollerState.POLLING:
                with PerformanceLogger(self.logger, "poll cycle"):
                    await self.poll_once(session)
                if self.state is PollerState.STOPPED:
                    break
                delay = self.next_poll_delay()
                self.logger.debug(f"Next poll in {delay:.0f}s")
                await self._wait(delay)

        return self.last_error
