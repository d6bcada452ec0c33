"""
Collections cached by the data store.

Each ``Resource`` names the state key, the REST endpoint, how fetched
documents are normalized, and how the cache is brought up to date after an
add or an update:

    RELOAD  re-fetch the whole collection
    APPEND  append the record the backend returned
    PATCH   merge the submitted fields into the cached record

Deletes always drop the record locally.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Tuple

from gemawi_client.core.constants import DEV_TASKS_PATH, MESSAGES_PATH, UNKNOWN_AUTHOR
from gemawi_client.core.utils import normalize_record, ref_id

Record = Dict[str, Any]


class SyncPolicy(str, Enum):
    RELOAD = "reload"
    APPEND = "append"
    PATCH  = "patch"


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------

def normalize_employee(doc: Record) -> Record:
    record = normalize_record(doc)
    record["departmentId"] = ref_id(doc.get("departmentId"))
    return record


def normalize_post(doc: Record) -> Record:
    record = normalize_record(doc)
    author = doc.get("authorId")
    author_name = author.get("name") if isinstance(author, dict) else None
    record["authorName"] = author_name or doc.get("authorName") or UNKNOWN_AUTHOR
    record["likes"] = doc.get("likes") or []
    record["comments"] = doc.get("comments") or []
    return record


def normalize_task(doc: Record) -> Record:
    record = normalize_record(doc)
    record["comments"] = doc.get("comments") or []
    return record


def normalize_dev_task(doc: Record) -> Record:
    record = normalize_record(doc)
    record["comments"] = doc.get("comments") or []
    record["tags"] = doc.get("tags") or []
    record["attachments"] = doc.get("attachments") or []
    return record


def normalize_message(doc: Record) -> Record:
    record = normalize_record(doc)
    record["senderId"] = ref_id(doc.get("senderId"))
    record["receiverId"] = ref_id(doc.get("receiverId"))
    record["timestamp"] = doc.get("createdAt") or doc.get("timestamp")
    return record


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Resource:
    key: str
    path: str
    on_add: SyncPolicy = SyncPolicy.RELOAD
    on_update: SyncPolicy = SyncPolicy.RELOAD
    normalize: Callable[[Record], Record] = normalize_record
    # Background load failures clear the cache instead of keeping it.
    empty_on_error: bool = False
    # Other collections whose cached values depend on this one.
    reload_also: Tuple[str, ...] = ()


_R, _A, _P = SyncPolicy.RELOAD, SyncPolicy.APPEND, SyncPolicy.PATCH

RESOURCES: Dict[str, Resource] = {
    r.key: r
    for r in (
        Resource("companies",      "/companies",      _A, _P),
        Resource("departments",    "/departments",    _R, _R),
        Resource("employees",      "/employees",      _R, _R, normalize_employee, empty_on_error=True),
        Resource("payrolls",       "/payroll",        _A, _P),
        Resource("revenues",       "/revenues",       _R, _R),
        Resource("expenses",       "/expenses",       _R, _R),
        Resource("posts",          "/posts",          _R, _R, normalize_post),
        Resource("custodies",      "/custody",        _R, _P),
        Resource("advances",       "/advances",       _R, _P),
        Resource("chat_messages",  MESSAGES_PATH,     _A, _P, normalize_message),
        Resource("tasks",          "/tasks",          _R, _R, normalize_task),
        # Update reloads only the month the edited record belongs to.
        Resource("attendance",     "/attendance",     _A, _R, empty_on_error=True),
        Resource("complaints",     "/complaints",     _A, _P),
        Resource("reviews",        "/reviews",        _A, _P),
        Resource("leave_requests", "/leave-requests", _R, _R, reload_also=("employees",)),
    )
}

DEV_TASKS = Resource("dev_tasks", DEV_TASKS_PATH, normalize=normalize_dev_task)

# Cached only on the client; the backend has no list endpoint for them.
LOCAL_COLLECTIONS = ("registration_requests",)
