"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for BuildWatch tests.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["BUILDWATCH_GITHUB__TOKEN"] = "test-github-token"
os.environ["BUILDWATCH_TELEGRAM__BOT_TOKEN"] = (
    "123456:ABC-DEF1234ghIkl-zyx57W2v1u123ew11_test"
)
os.environ["BUILDWATCH_TELEGRAM__CHANNEL"] = "@ci-test"


JENKINS_ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>test_pull_requests_origin all builds</title>
  <link rel="alternate" type="text/html" href="https://ci.example.com/job/test_pull_requests_origin/"/>
  <updated>2016-03-01T10:00:00Z</updated>
  <author><name>Jenkins Server</name></author>
  <id>urn:uuid:903deee0-7bfa-11db-9fe1-0800200c9a66</id>
  <entry>
    <title>test_pull_requests_origin #3 broken since build #2</title>
    <link rel="alternate" type="text/html" href="https://ci.example.com/job/test_pull_requests_origin/3/"/>
    <id>tag:hudson.dev.java.net,2016:test_pull_requests_origin:3</id>
    <published>2016-03-01T10:00:00Z</published>
    <updated>2016-03-01T10:00:00Z</updated>
    <content type="html">&lt;a href="https://github.com/openshift/origin/pull/7"&gt;PR #7&lt;/a&gt;</content>
  </entry>
  <entry>
    <title>test_pull_requests_origin #2 back to normal</title>
    <link rel="alternate" type="text/html" href="https://ci.example.com/job/test_pull_requests_origin/2/"/>
    <id>tag:hudson.dev.java.net,2016:test_pull_requests_origin:2</id>
    <published>2016-03-01T09:00:00Z</published>
    <updated>2016-03-01T09:00:00Z</updated>
    <content type="html">&lt;a href="https://github.com/openshift/origin/pull/5"&gt;PR #5&lt;/a&gt;</content>
  </entry>
</feed>
"""

JENKINS_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>test_pull_requests_origin</title>
    <link>https://ci.example.com/job/test_pull_requests_origin/</link>
    <description>Build results</description>
    <ttl>60</ttl>
    <item>
      <title>test_pull_requests_origin #9 was aborted</title>
      <link>https://ci.example.com/job/test_pull_requests_origin/9/</link>
      <guid>build-9</guid>
      <description>&lt;a href="https://github.com/openshift/origin/pull/11"&gt;PR&lt;/a&gt;</description>
    </item>
  </channel>
</rss>
"""


class FakeEnricher:
    """Pull request lookup double that records the numbers it was asked for."""

    def __init__(self, pulls: Optional[Dict[int, "PullRequestInfo"]] = None, delays: Optional[Dict[int, float]] = None):
        self.pulls = pulls or {}
        self.delays = delays or {}
        self.calls: List[int] = []

    async def enrich(self, number):
        from buildwatch.models import PullRequestInfo

        self.calls.append(number)
        await asyncio.sleep(self.delays.get(number, 0))
        return self.pulls.get(number, PullRequestInfo())

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


@pytest.fixture
def atom_feed():
    return JENKINS_ATOM_FEED


@pytest.fixture
def rss_feed():
    return JENKINS_RSS_FEED


@pytest.fixture
def settings():
    """Settings built from the test environment, without a log file."""
    from buildwatch.config.settings import BuildWatchSettings, LoggingSettings, FeedSettings

    return BuildWatchSettings(
        feed=FeedSettings(url="https://ci.example.com/job/test_pull_requests_origin/rssAll"),
        logging=LoggingSettings(file_path=None),
    )


@pytest.fixture
def make_item():
    """Factory for feed items referencing a pull request."""
    from buildwatch.models import FeedItem

    def _make(
        pull: Optional[int] = 7,
        title: str = "myjob #3 broken since build #2",
        links: Optional[List[str]] = None,
        content: Optional[str] = None,
        key: Optional[str] = None,
    ):
        if content is None and pull is not None:
            content = f'<a href="https://github.com/openshift/origin/pull/{pull}">PR</a>'
        return FeedItem(
            key=key or f"item-{pull}-{title}",
            title=title,
            links=links if links is not None else [f"https://ci.example.com/job/myjob/{pull}/"],
            content=content,
        )

    return _make


@pytest.fixture
def fake_enricher():
    return FakeEnricher()


@pytest.fixture
def enricher_factory():
    return FakeEnricher


@pytest.fixture
def mock_transport():
    """Chat transport double with awaitable methods."""
    transport = MagicMock()
    transport.connect = AsyncMock()
    transport.close = AsyncMock()
    transport.send_notice = AsyncMock()
    return transport


@pytest.fixture
def mock_session():
    """aiohttp session double whose get() yields a configurable response."""
    response = MagicMock()
    response.status = 200
    response.reason = "OK"
    response.text = AsyncMock(return_value="")
    response.json = AsyncMock(return_value={})

    session = MagicMock()
    session.get.return_value.__aenter__.return_value = response
    session.get.return_value.__aexit__.return_value = False
    session.close = AsyncMock()
    session.response = response
    return session
