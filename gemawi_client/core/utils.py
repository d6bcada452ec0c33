"""
Gemawi client — Shared utilities.

Pure functions used across the whole package. No imports from other package
modules beyond ``gemawi_client.core``; only the standard library is allowed.
"""

from __future__ import annotations

import json
import threading
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


# ---------------------------------------------------------------------------
# Identifier normalization
# ---------------------------------------------------------------------------

def ref_id(value: Any) -> Any:
    """Flatten a populated reference (``{"_id": ..., "name": ...}``) to its id.

    Plain ids pass through unchanged; empty values become ``None``.
    """
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return value or None


def normalize_record(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``doc`` whose ``id`` comes from the backend ``_id``."""
    record = dict(doc)
    record["id"] = doc.get("_id") or doc.get("id")
    return record


def normalize_records(docs: Optional[Iterable[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    if not docs:
        return []
    return [normalize_record(d) for d in docs]


# ---------------------------------------------------------------------------
# Temporary ids for optimistic entries
# ---------------------------------------------------------------------------

_temp_lock = threading.Lock()
_last_temp_ms = 0


def temp_id(prefix: str = "") -> str:
    """Millisecond-clock id for entries created before (or without) the server.

    Strictly increasing within the process so two entries created in the
    same millisecond still get distinct ids.
    """
    global _last_temp_ms
    with _temp_lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_temp_ms:
            now_ms = _last_temp_ms + 1
        _last_temp_ms = now_ms
    return f"{prefix}{now_ms}"


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix allowed) or epoch millis.

    Naive results are assumed to be UTC.  Unparseable input returns ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    """``json.dumps`` that understands datetimes and pydantic models."""
    return json.dumps(value, default=_json_default, ensure_ascii=False)
