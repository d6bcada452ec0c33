"""
Session store: the logged-in user and their bearer token.

The session is persisted under ``gemawi-auth`` as
``{"user": {...}, "isAuthenticated": true, "token": "..."}``, the same
shape the API client reads its token from.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from gemawi_client import permissions
from gemawi_client.api import ApiClient
from gemawi_client.core.constants import AUTH_KEY, LOGIN_FAILED_MESSAGE, LOGIN_PATH, ME_PATH, USERS_PATH
from gemawi_client.core.errors import ApiError, AuthError
from gemawi_client.domain.models import User
from gemawi_client.storage import StorageBackend
from gemawi_client.stores.base import Store

logger = logging.getLogger(__name__)

_LOGGED_OUT = {"user": None, "is_authenticated": False, "token": None}


class AuthStore(Store):
    def __init__(self, api: ApiClient, storage: StorageBackend) -> None:
        super().__init__()
        self._api = api
        self._storage = storage
        self._init_state(is_loading=False, **self._load_session())
        # Any 401 from the backend ends the session.
        api.add_unauthorized_listener(self._on_unauthorized)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load_session(self) -> Dict[str, Any]:
        stored = self._storage.get_json(AUTH_KEY)
        if not isinstance(stored, dict) or not stored.get("user"):
            return dict(_LOGGED_OUT)
        try:
            user = User.model_validate(stored["user"])
        except ValidationError as exc:
            logger.error("Error loading stored session: %s", exc)
            return dict(_LOGGED_OUT)
        return {
            "user": user,
            "is_authenticated": bool(stored.get("isAuthenticated")),
            "token": stored.get("token") or None,
        }

    def _stored_token(self) -> str:
        stored = self._storage.get_json(AUTH_KEY)
        if isinstance(stored, dict):
            return stored.get("token") or ""
        return ""

    def _persist(self, user: User, token: str) -> None:
        self._storage.set_json(
            AUTH_KEY,
            {"user": user.to_json(), "isAuthenticated": True, "token": token},
        )

    def _on_unauthorized(self) -> None:
        if self["is_authenticated"]:
            logger.info("Session expired for %s", self["user"].name if self["user"] else "?")
        self.set_state(**_LOGGED_OUT)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def user(self) -> Optional[User]:
        return self["user"]

    @property
    def is_authenticated(self) -> bool:
        return self["is_authenticated"]

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        user = self.user
        if user is not None and user.id == user_id:
            return user
        return None

    def has_permission(self, module: str, action: str) -> bool:
        return permissions.has_permission(self.user, module, action)

    def can_read(self, module: str) -> bool:
        return permissions.can_read(self.user, module)

    def can_write(self, module: str) -> bool:
        return permissions.can_write(self.user, module)

    def can_update(self, module: str) -> bool:
        return permissions.can_update(self.user, module)

    def can_delete(self, module: str) -> bool:
        return permissions.can_delete(self.user, module)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def login(self, email_or_phone: str, password: str) -> User:
        self.set_state(is_loading=True)
        try:
            data = await self._api.post(LOGIN_PATH, {"email": email_or_phone, "password": password})
            user = User.model_validate(data["user"])
            token = data["token"]
        except ApiError as exc:
            self.set_state(is_loading=False, **_LOGGED_OUT)
            message = exc.payload.get("message") if isinstance(exc.payload, dict) else None
            raise AuthError(message or LOGIN_FAILED_MESSAGE) from exc
        except (KeyError, TypeError, ValidationError) as exc:
            self.set_state(is_loading=False, **_LOGGED_OUT)
            logger.error("Malformed login response: %s", exc)
            raise AuthError(LOGIN_FAILED_MESSAGE) from exc

        # Storage first so the next request already carries the token.
        self._persist(user, token)
        self.set_state(user=user, is_authenticated=True, token=token, is_loading=False)
        logger.info("User %s logged in with %d permission entries", user.id, len(user.permissions))
        return user

    def logout(self) -> None:
        self.set_state(**_LOGGED_OUT)
        self._storage.remove(AUTH_KEY)

    def set_user(self, user: User | Dict[str, Any]) -> User:
        if not isinstance(user, User):
            user = User.model_validate(user)
        token = self._stored_token()
        self.set_state(user=user, is_authenticated=True, token=token or None)
        self._persist(user, token)
        return user

    async def update_user(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        """Update the current user on the backend, then locally.

        Ignored (returns ``None``) when ``user_id`` is not the current user.
        """
        user = self.user
        if user is None or user.id != user_id:
            return None
        try:
            await self._api.put(f"{USERS_PATH}/{user_id}", data)
        except ApiError as exc:
            logger.error("Failed to update user %s: %s", user_id, exc)
            raise

        updated = User.model_validate({**user.to_json(), **data})
        self.set_state(user=updated)
        self._persist(updated, self._stored_token())
        return updated

    def init_auth(self) -> None:
        self.set_state(**self._load_session())

    async def refresh_user(self) -> Optional[User]:
        try:
            data = await self._api.get(ME_PATH)
            user = self.set_user(data)
        except (ApiError, ValidationError) as exc:
            logger.error("Failed to refresh user: %s", exc)
            return None
        logger.debug("User refreshed: %s", user.id)
        return user
