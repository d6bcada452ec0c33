"""Tests for in-app notifications."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from gemawi_client.core.constants import NOTIFICATIONS_KEY
from gemawi_client.notifiers import Notifier
from gemawi_client.stores import NotificationStore


def _stored_ids(storage):
    return [n["id"] for n in storage.get_json(NOTIFICATIONS_KEY)]


class TestLoad:
    @pytest.mark.asyncio
    async def test_without_session_reads_local_storage(self, notifications, storage, backend):
        storage.set_json(NOTIFICATIONS_KEY, [
            {"id": "n1", "userId": "u1", "title": "Saved", "createdAt": "2026-01-05T08:00:00Z"},
        ])

        loaded = await notifications.load_notifications()

        assert [n.id for n in loaded] == ["n1"]
        assert loaded[0].created_at.year == 2026
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_with_session_reads_backend(self, logged_in, notifications, backend):
        backend.route("GET", "/notifications", json=[
            {"_id": "n7", "userId": {"_id": "u-admin"}, "type": "task", "title": "Assigned",
             "isRead": False, "createdAt": "2026-03-02T09:30:00.000Z"},
        ])

        (n,) = await notifications.load_notifications()

        assert n.id == "n7"
        assert n.user_id == "u-admin"
        assert n.type == "task"
        assert n.created_at.hour == 9

    @pytest.mark.asyncio
    async def test_backend_failure_falls_back(self, logged_in, notifications, storage, backend):
        storage.set_json(NOTIFICATIONS_KEY, [{"id": "n1", "userId": "u-admin"}])
        backend.fail("GET", "/notifications")

        loaded = await notifications.load_notifications()

        assert [n.id for n in loaded] == ["n1"]

    @pytest.mark.asyncio
    async def test_malformed_entries_are_skipped(self, notifications, storage):
        storage.set_json(NOTIFICATIONS_KEY, [{"title": "no id"}, {"id": "ok"}])
        loaded = await notifications.load_notifications()
        assert [n.id for n in loaded] == ["ok"]


class TestAdd:
    @pytest.mark.asyncio
    async def test_prepends_persists_and_notifies(self, notifications, storage, notifier):
        first = await notifications.add_notification("u1", "task", "First", "one")
        second = await notifications.add_notification("u1", "payroll", "Second", "two", link="/payroll")

        assert [n.id for n in notifications.notifications] == [second.id, first.id]
        assert int(second.id) > int(first.id)
        assert second.is_read is False
        assert second.link == "/payroll"
        assert _stored_ids(storage) == [second.id, first.id]
        assert notifier.sent == [first, second]

    @pytest.mark.asyncio
    async def test_notifier_failure_is_not_raised(self, api, storage):
        class Broken(Notifier):
            async def send(self, notification):
                raise RuntimeError("display unavailable")

        store = NotificationStore(api, storage, Broken())
        n = await store.add_notification("u1", title="Still stored")
        assert store.notifications == [n]

    @pytest.mark.asyncio
    async def test_defaults_to_null_notifier(self, api, storage):
        store = NotificationStore(api, storage)
        n = await store.add_notification("u1", title="Quiet")
        assert n.type == "system"


class TestMarkAndDelete:
    @pytest.mark.asyncio
    async def test_mark_as_read_applies_locally_even_on_failure(self, notifications, backend, storage):
        a = await notifications.add_notification("u1", title="A")
        backend.fail("PUT", f"/notifications/{a.id}/read")

        await notifications.mark_as_read(a.id)

        assert notifications.notifications[0].is_read is True
        assert storage.get_json(NOTIFICATIONS_KEY)[0]["isRead"] is True
        assert len(backend.calls("PUT", f"/notifications/{a.id}/read")) == 1

    @pytest.mark.asyncio
    async def test_mark_all_as_read_only_for_user(self, notifications, backend):
        a = await notifications.add_notification("u1", title="A")
        b = await notifications.add_notification("u2", title="B")
        backend.route("PUT", "/notifications/read-all", json={})

        await notifications.mark_all_as_read("u1")

        by_id = {n.id: n for n in notifications.notifications}
        assert by_id[a.id].is_read is True
        assert by_id[b.id].is_read is False
        assert notifications.get_unread_count("u1") == 0
        assert notifications.get_unread_count("u2") == 1

    @pytest.mark.asyncio
    async def test_mark_all_as_read_failure_changes_nothing(self, notifications, backend):
        await notifications.add_notification("u1", title="A")
        backend.route("PUT", "/notifications/read-all", status=500)

        await notifications.mark_all_as_read("u1")

        assert notifications.get_unread_count("u1") == 1

    @pytest.mark.asyncio
    async def test_delete_applies_locally_even_on_failure(self, notifications, backend, storage):
        a = await notifications.add_notification("u1", title="A")
        b = await notifications.add_notification("u1", title="B")

        await notifications.delete_notification(a.id)  # unrouted: backend answers 404

        assert [n.id for n in notifications.notifications] == [b.id]
        assert _stored_ids(storage) == [b.id]

    @pytest.mark.asyncio
    async def test_user_notifications(self, notifications):
        await notifications.add_notification("u1", title="A")
        await notifications.add_notification("u2", title="B")
        await notifications.add_notification("u1", title="C")

        titles = [n.title for n in notifications.get_user_notifications("u1")]
        assert titles == ["C", "A"]


@pytest.mark.asyncio
async def test_notifier_is_awaited(api, storage):
    notifier = AsyncMock(spec=Notifier)
    store = NotificationStore(api, storage, notifier)
    n = await store.add_notification("u1", title="Hi")
    notifier.send.assert_awaited_once_with(n)
