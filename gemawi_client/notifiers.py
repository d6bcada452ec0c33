"""
gemawi_client.notifiers — Desktop delivery channels for new notifications.

Design: every channel implements the ``Notifier`` ABC with a single async
``send(notification)`` method.  The notification store hands each newly
added notification to one notifier and never lets a delivery failure
reach its caller.

Current implementations:
    LogNotifier        — writes the notification to the log
    WebhookNotifier    — JSON POST to an HTTP endpoint
    CompositeNotifier  — Fan-out to multiple channels
    NullNotifier       — drops everything

Usage::

    from gemawi_client.notifiers import build_notifier_from_settings
    notifier = build_notifier_from_settings()
    await notifier.send(notification)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from gemawi_client import config
from gemawi_client.domain.models import Notification
from gemawi_client.metrics import increment_notifications_delivered

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class Notifier(ABC):
    """Abstract notification channel."""

    @abstractmethod
    async def send(self, notification: Notification) -> bool:
        """Send ``notification``.  Returns True on success, False on failure."""


# ---------------------------------------------------------------------------
# Log
# ---------------------------------------------------------------------------

class LogNotifier(Notifier):
    """Logs the title and body at INFO level."""

    def __init__(self, logger_name: str = "gemawi_client.notifications") -> None:
        self._log = logging.getLogger(logger_name)

    async def send(self, notification: Notification) -> bool:
        self._log.info("[%s] %s: %s", notification.type, notification.title, notification.message)
        increment_notifications_delivered()
        return True


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------

class WebhookNotifier(Notifier):
    """POSTs the notification JSON to ``webhook_url``."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = webhook_url
        self._timeout = timeout
        self._transport = transport

    async def send(self, notification: Notification) -> bool:
        if not self._url:
            return False
        body = {
            "title": notification.title,
            "body": notification.message,
            "type": notification.type,
            "link": notification.link,
            "userId": notification.user_id,
            "createdAt": notification.created_at.isoformat(),
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=body)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("WebhookNotifier: %s", exc)
            return False
        increment_notifications_delivered()
        return True


# ---------------------------------------------------------------------------
# Composite fan-out
# ---------------------------------------------------------------------------

class CompositeNotifier(Notifier):
    """Dispatch a notification to all registered channels concurrently."""

    def __init__(self, notifiers: List[Notifier]) -> None:
        self._notifiers = notifiers

    async def send(self, notification: Notification) -> bool:
        results = await asyncio.gather(
            *[n.send(notification) for n in self._notifiers],
            return_exceptions=True,
        )
        for r in results:
            if isinstance(r, Exception):
                logger.error("CompositeNotifier: channel failed: %s", r)
        return any(r is True for r in results)


# ---------------------------------------------------------------------------
# No-op (testing / default when nothing is configured)
# ---------------------------------------------------------------------------

class NullNotifier(Notifier):
    """Swallows notifications silently.  Used when no channel is configured."""

    async def send(self, notification: Notification) -> bool:
        logger.debug("NullNotifier: dropped notification %s", notification.id)
        return False


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def build_notifier_from_settings(
    webhook_url: Optional[str] = None,
    log_notifications: Optional[bool] = None,
) -> Notifier:
    """
    Build a notifier from explicit arguments or ``gemawi_client.config``.

    Falls back to ``NullNotifier`` if nothing is configured.
    """
    url = config.NOTIFY_WEBHOOK_URL if webhook_url is None else webhook_url
    use_log = config.LOG_NOTIFICATIONS if log_notifications is None else log_notifications

    channels: List[Notifier] = []
    if use_log:
        channels.append(LogNotifier())
    if url:
        channels.append(WebhookNotifier(url))

    if not channels:
        return NullNotifier()
    if len(channels) == 1:
        return channels[0]
    return CompositeNotifier(channels)
