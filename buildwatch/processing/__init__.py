"""
BuildWatch Processing Module
===========================

Turns new feed items into enriched notifications.
"""

from .status_classifier import classify_title
from .link_extractor import extract_pull_number, ExtractionResult
from .dispatcher import ItemDispatcher

__all__ = [
    'classify_title',
    'extract_pull_number',
    'ExtractionResult',
    'ItemDispatcher',
]
