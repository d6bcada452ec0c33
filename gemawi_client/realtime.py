"""
Realtime event channel.

Inbound: frames from the server are decoded and dispatched to handlers
registered with ``on(event, handler)``.  Outbound: ``emit`` sends a frame to
every attached transport and silently drops transports that have gone away.

A transport is any object with an ``async send(text: str)`` method (a
websocket connection, a test double).  Frames are JSON, either
``{"event": "...", "data": ...}`` or the ``["event", data]`` array form.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from gemawi_client.core.constants import EVENT_JOIN
from gemawi_client.core.utils import dumps
from gemawi_client.domain.models import User

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class Transport(Protocol):
    async def send(self, text: str) -> None: ...


class RealtimeChannel:
    """Routes realtime events between the server and local handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self.transports: List[Transport] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Optional[Handler] = None) -> None:
        """Remove ``handler`` for ``event``, or every handler when omitted."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    async def dispatch(self, event: str, data: Any = None) -> int:
        """Run every handler for ``event``; returns how many succeeded."""
        handlers = list(self._handlers.get(event, []))
        if not handlers:
            logger.debug("No handlers for realtime event %s", event)
            return 0

        ok = 0
        for handler in handlers:
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
                ok += 1
            except Exception as exc:
                logger.error("Realtime handler for %s failed: %s", event, exc)
        return ok

    async def handle_frame(self, text: Union[str, bytes]) -> int:
        """Decode one inbound frame and dispatch it."""
        try:
            frame = json.loads(text)
        except ValueError:
            logger.warning("Ignoring non-JSON realtime frame")
            return 0

        if isinstance(frame, dict) and isinstance(frame.get("event"), str):
            return await self.dispatch(frame["event"], frame.get("data"))
        if isinstance(frame, list) and frame and isinstance(frame[0], str):
            return await self.dispatch(frame[0], frame[1] if len(frame) > 1 else None)

        logger.warning("Ignoring malformed realtime frame: %.100s", text)
        return 0

    # ------------------------------------------------------------------
    # Transports
    # ------------------------------------------------------------------

    async def attach(self, transport: Transport) -> None:
        async with self._lock:
            self.transports.append(transport)
        logger.info("Realtime transport attached. Total transports: %d", len(self.transports))

    async def detach(self, transport: Transport) -> None:
        async with self._lock:
            if transport in self.transports:
                self.transports.remove(transport)
        logger.info("Realtime transport detached. Total transports: %d", len(self.transports))

    async def emit(self, event: str, data: Any = None) -> int:
        """Send ``event`` to every transport; returns how many received it.

        Transports whose ``send`` fails are removed.
        """
        payload = dumps({"event": event, "data": data})
        stale: List[Transport] = []

        async with self._lock:
            transports = list(self.transports)

        for transport in transports:
            try:
                await transport.send(payload)
            except Exception as exc:
                logger.debug("Realtime send failed: %s", exc)
                stale.append(transport)

        if stale:
            async with self._lock:
                for transport in stale:
                    if transport in self.transports:
                        self.transports.remove(transport)
            logger.info("Removed %d stale realtime transports", len(stale))
        return len(transports) - len(stale)

    async def join(self, user: User) -> int:
        """Announce ``user`` so the server routes their events here."""
        return await self.emit(EVENT_JOIN, {"userId": user.id, "companyId": user.company_id})

    @property
    def transport_count(self) -> int:
        return len(self.transports)
