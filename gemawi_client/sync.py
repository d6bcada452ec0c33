"""
Wires realtime events into the stores.

    new-message       cache the message if it is addressed to the current user
    new-post          notify the current user about someone else's post
    new-task-comment  reload tasks
    notification      add a notification for the current user
    dev-task-*        reload dev tasks
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Tuple

from gemawi_client.core.constants import (
    DEV_TASK_EVENTS,
    EVENT_NEW_MESSAGE,
    EVENT_NEW_POST,
    EVENT_NEW_TASK_COMMENT,
    EVENT_NOTIFICATION,
)
from gemawi_client.core.utils import ref_id
from gemawi_client.domain.enums import NotificationType
from gemawi_client.realtime import Handler, RealtimeChannel
from gemawi_client.stores.auth import AuthStore
from gemawi_client.stores.data import DataStore
from gemawi_client.stores.notifications import NotificationStore

logger = logging.getLogger(__name__)


def bind_realtime(
    channel: RealtimeChannel,
    auth: AuthStore,
    data: DataStore,
    notifications: NotificationStore,
) -> Callable[[], None]:
    """Register the store handlers on ``channel``; returns an unbind callable."""

    def on_new_message(payload: Any) -> None:
        user = auth.user
        if user is None or not isinstance(payload, dict):
            return
        data.apply_incoming_message(payload, user.id)

    async def on_new_post(payload: Any) -> None:
        user = auth.user
        if user is None or not isinstance(payload, dict):
            return
        author = payload.get("authorId")
        if str(ref_id(author)) == user.id:
            return
        author_name = payload.get("authorName") or (author.get("name") if isinstance(author, dict) else None)
        await notifications.add_notification(
            user_id=user.id,
            type=NotificationType.SYSTEM.value,
            title="New post",
            message=f"{author_name or 'Someone'} published a new post",
            link="/posts",
        )

    async def on_new_task_comment(payload: Any) -> None:
        await data.load("tasks")

    async def on_notification(payload: Any) -> None:
        user = auth.user
        if user is None or not isinstance(payload, dict):
            return
        await notifications.add_notification(
            user_id=user.id,
            type=payload.get("type") or NotificationType.SYSTEM.value,
            title=payload.get("title", ""),
            message=payload.get("message", ""),
            link=payload.get("link"),
            sender_id=ref_id(payload.get("senderId")),
            sender_name=payload.get("senderName"),
        )

    async def on_dev_task_event(payload: Any) -> None:
        await data.load_dev_tasks()

    bindings: List[Tuple[str, Handler]] = [
        (EVENT_NEW_MESSAGE, on_new_message),
        (EVENT_NEW_POST, on_new_post),
        (EVENT_NEW_TASK_COMMENT, on_new_task_comment),
        (EVENT_NOTIFICATION, on_notification),
    ]
    bindings.extend((event, on_dev_task_event) for event in DEV_TASK_EVENTS)

    for event, handler in bindings:
        channel.on(event, handler)
    logger.debug("Bound %d realtime handlers", len(bindings))

    def unbind() -> None:
        for event, handler in bindings:
            channel.off(event, handler)

    return unbind
