"""
Backup and restore of the locally persisted ``gemawi-*`` keys.

A backup is a JSON object mapping each key to its raw stored string, plus a
``timestamp``.  ``auto_backup`` writes one into a directory at most once per
``BACKUP_INTERVAL_HOURS``, remembering the last run under ``last-backup``.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Dict, Optional

from gemawi_client import config
from gemawi_client.core.constants import BACKUP_KEY_PREFIX, LAST_BACKUP_KEY
from gemawi_client.core.errors import StorageError
from gemawi_client.core.utils import utcnow
from gemawi_client.storage import StorageBackend

logger = logging.getLogger(__name__)


def backup_filename(now=None) -> str:
    now = now or utcnow()
    return f"gemawi-backup-{now.date().isoformat()}.json"


def create_backup(storage: StorageBackend, path: str) -> Dict[str, str]:
    """Write every ``gemawi-*`` key to ``path``; returns what was written."""
    data: Dict[str, str] = {}
    for key in storage.keys():
        if not key.startswith(BACKUP_KEY_PREFIX):
            continue
        value = storage.get(key)
        if value is not None:
            data[key] = value
    data["timestamp"] = utcnow().isoformat()

    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
    except OSError as exc:
        raise StorageError(f"Cannot write backup {path}: {exc}") from exc

    logger.info("Backup written to %s (%d keys)", path, len(data) - 1)
    return data


def restore_backup(storage: StorageBackend, path: str) -> int:
    """Write the keys from a backup file back into ``storage``.

    Returns the number of keys restored.  Empty values and the
    ``timestamp`` entry are skipped.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        raise StorageError(f"Cannot read backup {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StorageError(f"Backup {path} is not a JSON object")

    restored = 0
    for key, value in data.items():
        if key == "timestamp" or not value:
            continue
        storage.set(key, value if isinstance(value, str) else json.dumps(value))
        restored += 1
    logger.info("Restored %d keys from %s", restored, path)
    return restored


def auto_backup(
    storage: StorageBackend,
    directory: str,
    interval_hours: Optional[float] = None,
    now_ms: Optional[int] = None,
) -> Optional[str]:
    """Back up into ``directory`` if the last backup is older than the interval.

    Returns the written path, or ``None`` when no backup was due.
    """
    interval = config.BACKUP_INTERVAL_HOURS if interval_hours is None else interval_hours
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)

    last = storage.get(LAST_BACKUP_KEY)
    try:
        last_ms = int(last) if last else None
    except ValueError:
        logger.warning("Ignoring invalid %s value %r", LAST_BACKUP_KEY, last)
        last_ms = None

    if last_ms is not None and now_ms - last_ms <= interval * 3600 * 1000:
        return None

    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, backup_filename())
    create_backup(storage, path)
    storage.set(LAST_BACKUP_KEY, str(now_ms))
    return path
