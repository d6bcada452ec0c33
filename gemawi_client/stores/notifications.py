"""
In-app notifications.

The list lives in memory, is mirrored to ``gemawi-notifications`` after
every local change, and is served from there whenever the backend cannot
be reached or no one is logged in.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from gemawi_client.api import ApiClient
from gemawi_client.core.constants import AUTH_KEY, NOTIFICATIONS_KEY, NOTIFICATIONS_PATH
from gemawi_client.core.errors import ApiError
from gemawi_client.core.utils import temp_id, utcnow
from gemawi_client.domain.enums import NotificationType
from gemawi_client.domain.models import Notification
from gemawi_client.notifiers import Notifier, NullNotifier
from gemawi_client.storage import StorageBackend
from gemawi_client.stores.base import Store

logger = logging.getLogger(__name__)


def _parse_all(docs: Any) -> List[Notification]:
    out: List[Notification] = []
    for doc in docs or []:
        try:
            out.append(Notification.model_validate(doc))
        except ValidationError as exc:
            logger.warning("Skipping malformed notification: %s", exc)
    return out


class NotificationStore(Store):
    def __init__(
        self,
        api: ApiClient,
        storage: StorageBackend,
        notifier: Optional[Notifier] = None,
    ) -> None:
        super().__init__()
        self._api = api
        self._storage = storage
        self._notifier = notifier or NullNotifier()
        self._init_state(notifications=[])

    @property
    def notifications(self) -> List[Notification]:
        return list(self["notifications"])

    def _stored(self) -> List[Notification]:
        stored = self._storage.get_json(NOTIFICATIONS_KEY)
        return _parse_all(stored) if isinstance(stored, list) else []

    def _save(self, notifications: List[Notification]) -> None:
        self.set_state(notifications=notifications)
        self._storage.set_json(NOTIFICATIONS_KEY, [n.to_json() for n in notifications])

    async def load_notifications(self) -> List[Notification]:
        if self._storage.get(AUTH_KEY) is None:
            self.set_state(notifications=self._stored())
            return self.notifications
        try:
            docs = await self._api.get(NOTIFICATIONS_PATH)
        except ApiError as exc:
            if not exc.is_unauthorized:
                logger.error("Failed to load notifications: %s", exc)
            self.set_state(notifications=self._stored())
            return self.notifications
        self.set_state(notifications=_parse_all(docs))
        return self.notifications

    async def add_notification(
        self,
        user_id: str,
        type: str = NotificationType.SYSTEM.value,
        title: str = "",
        message: str = "",
        link: Optional[str] = None,
        sender_id: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> Notification:
        """Add a client-side notification and hand it to the notifier.

        Delivery failures are logged and never raised.
        """
        notification = Notification(
            id=temp_id(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            link=link,
            sender_id=sender_id,
            sender_name=sender_name,
            is_read=False,
            created_at=utcnow(),
        )
        self._save([notification, *self["notifications"]])

        try:
            await self._notifier.send(notification)
        except Exception as exc:
            logger.error("Notifier failed for %s: %s", notification.id, exc)
        return notification

    async def mark_as_read(self, notification_id: str) -> None:
        try:
            await self._api.put(f"{NOTIFICATIONS_PATH}/{notification_id}/read")
        except ApiError as exc:
            logger.error("Failed to mark as read: %s", exc)
        self._save([
            n.model_copy(update={"is_read": True}) if n.id == notification_id else n
            for n in self["notifications"]
        ])

    async def mark_all_as_read(self, user_id: str) -> None:
        try:
            await self._api.put(f"{NOTIFICATIONS_PATH}/read-all")
        except ApiError as exc:
            logger.error("Failed to mark all as read: %s", exc)
            return
        self._save([
            n.model_copy(update={"is_read": True}) if n.user_id == user_id else n
            for n in self["notifications"]
        ])

    async def delete_notification(self, notification_id: str) -> None:
        try:
            await self._api.delete(f"{NOTIFICATIONS_PATH}/{notification_id}")
        except ApiError as exc:
            logger.error("Failed to delete notification from backend: %s", exc)
        self._save([n for n in self["notifications"] if n.id != notification_id])

    def get_unread_count(self, user_id: str) -> int:
        return sum(1 for n in self["notifications"] if n.user_id == user_id and not n.is_read)

    def get_user_notifications(self, user_id: str) -> List[Notification]:
        return [n for n in self["notifications"] if n.user_id == user_id]
