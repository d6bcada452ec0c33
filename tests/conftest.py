"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • storage      — fresh ``MemoryStorage``
  • backend      — ``FakeBackend`` routing table behind ``httpx.MockTransport``
  • api          — ``ApiClient`` talking to ``backend``
  • auth / data / notifications — stores wired to the above
  • logged_in    — stores a session for ``ADMIN`` before the stores are built
"""

from __future__ import annotations

import json
import os
import sys
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import httpx
import pytest

# Ensure the project root is on the path so all gemawi_client imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from gemawi_client.api import ApiClient  # noqa: E402
from gemawi_client.core.constants import AUTH_KEY  # noqa: E402
from gemawi_client.metrics import reset_metrics_for_tests  # noqa: E402
from gemawi_client.notifiers import Notifier  # noqa: E402
from gemawi_client.storage import MemoryStorage  # noqa: E402
from gemawi_client.stores import AuthStore, DataStore, NotificationStore  # noqa: E402

BASE_URL = "http://gemawi.test/api"

ADMIN = {
    "_id": "u-admin",
    "name": "Mona Admin",
    "email": "admin@gemawi.test",
    "role": "general_manager",
    "companyId": {"_id": "c-1", "name": "Gemawi"},
}

EMPLOYEE = {
    "_id": "u-emp",
    "name": "Karim",
    "email": "karim@gemawi.test",
    "role": "employee",
    "permissions": [
        {"module": "tasks", "actions": ["view", "edit"]},
        {"module": "posts", "actions": ["read"]},
    ],
}


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------

Handler = Callable[[httpx.Request, Any], Tuple[int, Any]]


class FakeBackend:
    """In-process stand-in for the REST API.

    Routes are keyed by ``(METHOD, path)`` with the ``/api`` prefix removed.
    Unrouted requests get a 404.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[SimpleNamespace] = []

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        handler: Optional[Handler] = None,
    ) -> None:
        self.routes[(method.upper(), path)] = handler or (lambda _req, _body: (status, json))

    def fail(self, method: str, path: str) -> None:
        """Make ``method path`` raise a connection error."""

        def _raise(request: httpx.Request, _body: Any):
            raise httpx.ConnectError("connection refused", request=request)

        self.routes[(method.upper(), path)] = _raise

    def calls(self, method: str, path: str) -> List[SimpleNamespace]:
        return [r for r in self.requests if r.method == method.upper() and r.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        body = json.loads(request.content) if request.content else None
        self.requests.append(SimpleNamespace(
            method=request.method,
            path=path,
            json=body,
            params=dict(request.url.params),
            headers=request.headers,
        ))

        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        status, payload = handler(request, body)
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent = []

    async def send(self, notification) -> bool:
        self.sent.append(notification)
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics_for_tests()
    yield
    reset_metrics_for_tests()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api(storage, backend):
    return ApiClient(storage, base_url=BASE_URL, transport=httpx.MockTransport(backend))


@pytest.fixture
def store_session(storage):
    def _store(user: Dict[str, Any] = ADMIN, token: str = "tok-123") -> None:
        storage.set_json(AUTH_KEY, {"user": user, "isAuthenticated": True, "token": token})
    return _store


@pytest.fixture
def logged_in(store_session):
    store_session()


@pytest.fixture
def auth(api, storage):
    return AuthStore(api, storage)


@pytest.fixture
def data(api, storage, auth):
    return DataStore(api, storage, auth)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def notifications(api, storage, notifier):
    return NotificationStore(api, storage, notifier)


@pytest.fixture
def mock_transport():
    t = AsyncMock()
    t.send = AsyncMock()
    return t


@pytest.fixture
def admin_doc():
    return dict(ADMIN)


@pytest.fixture
def employee_doc():
    return dict(EMPLOYEE)
