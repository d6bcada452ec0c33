"""Tests for the session store."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gemawi_client.core.constants import AUTH_KEY
from gemawi_client.core.errors import ApiError, AuthError
from gemawi_client.stores import AuthStore


def _login_ok(user, token="tok-new"):
    return {"user": user, "token": token}


class TestLogin:
    @pytest.mark.asyncio
    async def test_success_sets_state_and_persists(self, auth, backend, storage, admin_doc):
        backend.route("POST", "/auth/login", json=_login_ok(admin_doc))

        user = await auth.login("admin@gemawi.test", "secret")

        assert user.id == "u-admin"
        assert user.company_id == "c-1"
        assert auth.is_authenticated
        assert auth["token"] == "tok-new"
        assert auth["is_loading"] is False
        assert backend.calls("POST", "/auth/login")[0].json == {
            "email": "admin@gemawi.test",
            "password": "secret",
        }
        stored = storage.get_json(AUTH_KEY)
        assert stored["isAuthenticated"] is True
        assert stored["token"] == "tok-new"
        assert stored["user"]["id"] == "u-admin"

    @pytest.mark.asyncio
    async def test_next_request_carries_new_token(self, auth, api, backend, admin_doc):
        backend.route("POST", "/auth/login", json=_login_ok(admin_doc, token="fresh"))
        backend.route("GET", "/employees", json=[])
        await auth.login("admin@gemawi.test", "secret")
        await api.get("/employees")
        assert backend.requests[-1].headers["authorization"] == "Bearer fresh"

    @pytest.mark.asyncio
    async def test_rejected_login_uses_backend_message(self, auth, backend, storage):
        backend.route("POST", "/auth/login", status=401, json={"message": "Invalid credentials"})

        with pytest.raises(AuthError, match="Invalid credentials"):
            await auth.login("admin@gemawi.test", "wrong")

        assert not auth.is_authenticated
        assert auth["is_loading"] is False
        assert storage.get(AUTH_KEY) is None

    @pytest.mark.asyncio
    async def test_failure_without_message_is_generic(self, auth, backend):
        backend.fail("POST", "/auth/login")
        with pytest.raises(AuthError, match="Login failed"):
            await auth.login("admin@gemawi.test", "secret")

    @pytest.mark.asyncio
    async def test_malformed_response(self, auth, backend):
        backend.route("POST", "/auth/login", json={"ok": True})
        with pytest.raises(AuthError, match="Login failed"):
            await auth.login("admin@gemawi.test", "secret")
        assert not auth.is_authenticated


class TestSession:
    def test_restores_stored_session(self, logged_in, auth):
        assert auth.is_authenticated
        assert auth.user.name == "Mona Admin"
        assert auth["token"] == "tok-123"

    def test_ignores_invalid_stored_user(self, api, storage):
        storage.set_json(AUTH_KEY, {"user": {"name": "no id"}, "isAuthenticated": True})
        store = AuthStore(api, storage)
        assert store.user is None
        assert not store.is_authenticated

    def test_logout(self, logged_in, auth, storage):
        auth.logout()
        assert auth.user is None
        assert not auth.is_authenticated
        assert storage.get(AUTH_KEY) is None

    def test_init_auth_reloads_from_storage(self, auth, store_session, employee_doc):
        assert not auth.is_authenticated
        store_session(employee_doc, "emp-token")
        auth.init_auth()
        assert auth.user.id == "u-emp"
        assert auth["token"] == "emp-token"

    def test_set_user_keeps_token(self, logged_in, auth, storage, admin_doc):
        auth.set_user({**admin_doc, "name": "Mona A."})
        stored = storage.get_json(AUTH_KEY)
        assert stored["token"] == "tok-123"
        assert stored["user"]["name"] == "Mona A."
        assert auth.user.name == "Mona A."

    @pytest.mark.asyncio
    async def test_401_elsewhere_logs_out(self, logged_in, auth, api, backend):
        listener = MagicMock()
        auth.subscribe(listener)
        backend.route("GET", "/tasks", status=401)

        with pytest.raises(ApiError):
            await api.get("/tasks")

        assert not auth.is_authenticated
        assert auth.user is None
        new_state, old_state = listener.call_args[0]
        assert old_state["is_authenticated"] is True
        assert new_state["is_authenticated"] is False

    def test_get_user_by_id(self, logged_in, auth):
        assert auth.get_user_by_id("u-admin") is auth.user
        assert auth.get_user_by_id("someone-else") is None


class TestUpdateUser:
    @pytest.mark.asyncio
    async def test_updates_current_user(self, logged_in, auth, backend, storage):
        backend.route("PUT", "/users/u-admin", json={"ok": True})

        updated = await auth.update_user("u-admin", {"phone": "+20100", "language": "en"})

        assert updated.phone == "+20100"
        assert auth.user.language == "en"
        assert backend.calls("PUT", "/users/u-admin")[0].json == {"phone": "+20100", "language": "en"}
        assert storage.get_json(AUTH_KEY)["user"]["phone"] == "+20100"
        assert storage.get_json(AUTH_KEY)["token"] == "tok-123"

    @pytest.mark.asyncio
    async def test_other_user_is_ignored(self, logged_in, auth, backend):
        assert await auth.update_user("u-other", {"phone": "1"}) is None
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_failure_is_raised(self, logged_in, auth, backend):
        backend.route("PUT", "/users/u-admin", status=500, json={"message": "boom"})
        with pytest.raises(ApiError):
            await auth.update_user("u-admin", {"phone": "1"})
        assert auth.user.phone == ""


class TestRefreshUser:
    @pytest.mark.asyncio
    async def test_refresh(self, logged_in, auth, backend, admin_doc):
        backend.route("GET", "/auth/me", json={**admin_doc, "name": "Fresh Name"})
        user = await auth.refresh_user()
        assert user.name == "Fresh Name"
        assert auth.user.name == "Fresh Name"

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_user(self, logged_in, auth, backend):
        backend.route("GET", "/auth/me", status=500)
        assert await auth.refresh_user() is None
        assert auth.user.name == "Mona Admin"


class TestPermissions:
    def test_full_access_role(self, logged_in, auth):
        assert auth.can_delete("salaries")

    def test_employee_permissions(self, auth, store_session, employee_doc):
        store_session(employee_doc)
        auth.init_auth()
        assert auth.can_read("tasks")
        assert auth.can_update("tasks")
        assert not auth.can_delete("tasks")
        assert auth.can_read("posts")
        assert not auth.can_write("posts")
        assert not auth.has_permission("salaries", "view")
