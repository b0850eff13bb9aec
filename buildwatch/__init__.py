"""
BuildWatch - CI Build Status Bridge
===================================

Polls a CI server's feed for build status changes, looks up the related
GitHub pull requests and relays status notices to a Telegram channel.

Main Components:
- Ingestion: feed polling driven by the feed's refresh hint
- Processing: status classification, pull request extraction, bounded dispatch
- GitHub: pull request title/author enrichment
- Delivery: ordered relay to the chat transport
"""

__version__ = "1.0.0"
__description__ = "CI build status notifications for chat channels"

from .config.settings import get_settings, BuildWatchSettings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import BuildWatchError

__all__ = [
    "get_settings",
    "BuildWatchSettings",
    "configure_application_logging",
    "get_logger_for_component",
    "BuildWatchError",
]
