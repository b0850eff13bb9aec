"""
BuildWatch Ingestion Module
==========================

CI feed polling and new-entry detection.
"""

from .feed_poller import FeedPoller, PollerState, FetchResult

__all__ = ['FeedPoller', 'PollerState', 'FetchResult']
