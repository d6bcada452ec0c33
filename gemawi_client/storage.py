"""
Local persisted state (Redis preferred when configured, file fallback).

This is the client's equivalent of browser local storage: a flat string
key/value space holding the session (``gemawi-auth``), settings,
notifications and the dev-task fallback copy.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

from gemawi_client import config
from gemawi_client.core.errors import StorageError
from gemawi_client.core.utils import dumps

try:
    import redis  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    redis = None

logger = logging.getLogger(__name__)


class StorageBackend:
    backend: str = "none"

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def get_json(self, key: str) -> Optional[Any]:
        """Decoded JSON value for ``key``; ``None`` when missing or corrupt."""
        try:
            raw = self.get(key)
        except Exception as exc:
            logger.error("Storage read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.error("Corrupt JSON stored under %s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        try:
            self.set(key, dumps(value))
        except Exception as exc:
            logger.error("Storage write failed for %s: %s", key, exc)


class MemoryStorage(StorageBackend):
    backend = "memory"

    def __init__(self) -> None:
        self._store: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._store[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._store)


class FileStorage(StorageBackend):
    """One file per key under ``directory``; writes are atomic renames."""

    backend = "file"

    def __init__(self, directory: str) -> None:
        self._dir = directory
        self._lock = threading.Lock()
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create storage directory {directory}: {exc}") from exc

    def _path(self, key: str) -> str:
        return os.path.join(self._dir, quote(key, safe="") + ".json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        with self._lock:
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    return fh.read()
            except FileNotFoundError:
                return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path + ".tmp"
        with self._lock:
            with open(tmp, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, path)

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                os.remove(self._path(key))
            except FileNotFoundError:
                pass

    def keys(self) -> List[str]:
        with self._lock:
            names = os.listdir(self._dir)
        return sorted(unquote(n[: -len(".json")]) for n in names if n.endswith(".json"))


class RedisStorage(StorageBackend):
    backend = "redis"

    def __init__(self, url: str, namespace: str = "gemawi-client:") -> None:
        if redis is None:
            raise RuntimeError("redis package not installed")
        self._ns = namespace
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
            retry_on_timeout=False,
        )
        # Fail fast so the factory can fall back to file storage.
        self._client.ping()

    def get(self, key: str) -> Optional[str]:
        return self._client.get(self._ns + key)

    def set(self, key: str, value: str) -> None:
        self._client.set(self._ns + key, value)

    def remove(self, key: str) -> None:
        self._client.delete(self._ns + key)

    def keys(self) -> List[str]:
        return sorted(k[len(self._ns):] for k in self._client.scan_iter(match=self._ns + "*"))


_storage_singleton: Optional[StorageBackend] = None
_storage_lock = threading.Lock()


def _build_storage() -> StorageBackend:
    if config.STORAGE_IN_MEMORY:
        return MemoryStorage()

    if config.REDIS_URL:
        try:
            return RedisStorage(config.REDIS_URL)
        except Exception as exc:
            logger.warning("Redis storage unavailable (%s); falling back to files", exc)

    try:
        return FileStorage(config.STORAGE_DIR)
    except StorageError as exc:
        logger.warning("%s; falling back to in-memory storage", exc)
        return MemoryStorage()


def get_storage() -> StorageBackend:
    global _storage_singleton
    if _storage_singleton is not None:
        return _storage_singleton

    with _storage_lock:
        if _storage_singleton is None:
            _storage_singleton = _build_storage()
            logger.info("Local storage backend: %s", _storage_singleton.backend)
        return _storage_singleton


def reset_storage_for_tests() -> None:
    """Test helper to clear the singleton storage backend."""
    global _storage_singleton
    with _storage_lock:
        _storage_singleton = None
