"""
BuildWatch Delivery Module
=========================

Ordered relay of notifications to the chat transport.
"""

from .relay import NotificationRelay
from .telegram_transport import TelegramTransport

__all__ = ['NotificationRelay', 'TelegramTransport']
