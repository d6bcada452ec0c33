"""
Gemawi client — REST API client.

Wraps every HTTP call to the Gemawi backend in a single, reusable class.
Attaches the stored bearer token, decodes JSON bodies, and turns failures
into ``ApiError``.

Usage::

    api = ApiClient(storage)
    employees = await api.get("/employees")
    await api.post("/tasks", {"title": "Close March payroll"})
    await api.aclose()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from gemawi_client import config
from gemawi_client.core.constants import AUTH_KEY, LOGIN_PATH
from gemawi_client.core.errors import ApiError
from gemawi_client.core.utils import dumps
from gemawi_client.metrics import record_request
from gemawi_client.storage import StorageBackend, get_storage

logger = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

UnauthorizedListener = Callable[[], None]


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for field in ("message", "detail", "error"):
            if body.get(field):
                return str(body[field])
    text = resp.text.strip()
    return text or resp.reason_phrase or f"HTTP {resp.status_code}"


def _decode(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


class ApiClient:
    """Async HTTP client for the Gemawi REST API.

    Instantiate once per session; the internal httpx.AsyncClient is
    lazily created and reused across calls.  ``transport`` lets tests
    plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._storage = storage or get_storage()
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else config.API_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._unauthorized_listeners: List[UnauthorizedListener] = []
        logger.debug("API client configured for %s", self.base_url)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=_HEADERS,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    def _auth_headers(self) -> Dict[str, str]:
        auth = self._storage.get_json(AUTH_KEY)
        if not auth:
            logger.debug("No stored session; sending request without a token")
            return {}
        if not isinstance(auth, dict):
            logger.error("Stored session under %s is not an object", AUTH_KEY)
            return {}
        token = auth.get("token")
        if not token:
            logger.warning("Stored session has no token")
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _handle_unauthorized(self, path: str) -> None:
        # A rejected login is not an expired session.
        if path.startswith(LOGIN_PATH):
            return
        logger.warning("Backend rejected the session token (401 on %s); clearing session", path)
        self._storage.remove(AUTH_KEY)
        for listener in list(self._unauthorized_listeners):
            try:
                listener()
            except Exception as exc:
                logger.error("Unauthorized listener failed: %s", exc)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_unauthorized_listener(self, listener: UnauthorizedListener) -> Callable[[], None]:
        """Call ``listener`` whenever the backend answers 401.

        Returns a callable that removes the listener again.
        """
        self._unauthorized_listeners.append(listener)

        def _remove() -> None:
            if listener in self._unauthorized_listeners:
                self._unauthorized_listeners.remove(listener)

        return _remove

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Raises ``ApiError`` on transport failures and non-2xx responses.
        """
        client = await self._client_get()
        logger.debug("API request %s %s%s", method, self.base_url, path)
        try:
            resp = await client.request(
                method,
                path,
                content=None if json is None else dumps(json).encode("utf-8"),
                params=params,
                headers=self._auth_headers(),
            )
        except httpx.HTTPError as exc:
            record_request(ok=False)
            logger.error("API %s %s failed: %s", method, path, exc)
            raise ApiError(f"Request failed: {exc}") from exc

        if resp.is_success:
            record_request(ok=True)
            return _decode(resp)

        record_request(ok=False)
        if resp.status_code == 401:
            self._handle_unauthorized(path)
        message = _error_message(resp)
        raise ApiError(message, status_code=resp.status_code, payload=_decode(resp))

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        """Cleanly close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
