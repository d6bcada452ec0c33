"""
gemawi_client.client — Default wiring of storage, API client and stores.

Usage::

    async with GemawiClient() as gemawi:
        await gemawi.auth.login("admin@example.com", "secret")
        await gemawi.data.load_many("employees", "departments")
        print(gemawi.dashboard().active_employees)
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from gemawi_client.api import ApiClient
from gemawi_client.dashboard import DashboardSummary, build_dashboard
from gemawi_client.notifiers import Notifier, build_notifier_from_settings
from gemawi_client.realtime import RealtimeChannel, Transport
from gemawi_client.storage import StorageBackend, get_storage
from gemawi_client.stores import AuthStore, DataStore, NotificationStore, SettingsStore
from gemawi_client.sync import bind_realtime

logger = logging.getLogger(__name__)


class GemawiClient:
    """Owns one of each store, sharing a storage backend and an API client."""

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        base_url: Optional[str] = None,
        notifier: Optional[Notifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.storage = storage or get_storage()
        self.api = ApiClient(self.storage, base_url=base_url, transport=transport)
        self.auth = AuthStore(self.api, self.storage)
        self.data = DataStore(self.api, self.storage, self.auth)
        self.notifications = NotificationStore(
            self.api,
            self.storage,
            notifier if notifier is not None else build_notifier_from_settings(),
        )
        self.settings = SettingsStore(self.storage)
        self.channel = RealtimeChannel()
        self._unbind = bind_realtime(self.channel, self.auth, self.data, self.notifications)

    async def connect_realtime(self, transport: Transport) -> None:
        """Attach a connected transport and join as the current user."""
        await self.channel.attach(transport)
        if self.auth.user is not None:
            await self.channel.join(self.auth.user)

    def dashboard(self) -> DashboardSummary:
        user = self.auth.user
        return build_dashboard(self.data.get_state(), user.id if user else "")

    async def aclose(self) -> None:
        self._unbind()
        for transport in list(self.channel.transports):
            await self.channel.detach(transport)
        await self.api.aclose()

    async def __aenter__(self) -> "GemawiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
