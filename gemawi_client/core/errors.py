"""
Exceptions raised by the Gemawi client.
"""

from __future__ import annotations

from typing import Any, Optional


class GemawiError(Exception):
    """Base class for every error raised by this package."""


class ApiError(GemawiError):
    """A backend call failed.

    ``status_code`` is ``None`` when the request never got a response
    (connection refused, timeout, …).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code!r}, message={self.message!r})"


class AuthError(GemawiError):
    """Login was rejected or could not be completed."""


class StorageError(GemawiError):
    """The local storage backend could not be read or written."""
