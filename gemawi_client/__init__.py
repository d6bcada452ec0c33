"""
gemawi_client — Python client and sync layer for the Gemawi HR / accounting backend.
"""

from gemawi_client.api import ApiClient
from gemawi_client.client import GemawiClient
from gemawi_client.core.errors import ApiError, AuthError, GemawiError, StorageError
from gemawi_client.core.logging import configure_logging

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthError",
    "GemawiClient",
    "GemawiError",
    "StorageError",
    "configure_logging",
]
