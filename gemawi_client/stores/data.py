"""
Cached backend collections (employees, tasks, revenues, …).

Every collection supports ``load`` / ``add`` / ``update`` / ``remove``; what
happens to the cache after a mutation is declared per collection in
``gemawi_client.stores.resources``.  The irregular endpoints (comments,
likes, leave balances, registration, chat, dev tasks) get their own
methods below.

Error handling follows one rule: background loads log and keep (or clear)
the cache, user-initiated mutations log and re-raise ``ApiError`` so the
caller can show it.  Dev tasks are the exception: they fall back to the
copy kept in local storage and never raise.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from gemawi_client.api import ApiClient
from gemawi_client.core.constants import (
    DEV_TASKS_KEY,
    LEAVE_REQUESTS_PATH,
    REGISTER_PATH,
    REGISTRATION_DURATION_MONTHS,
    REGISTRATION_INDUSTRY,
    REGISTRATION_PLAN,
    ROLE_EMPLOYEE,
    ROLE_GENERAL_MANAGER,
    UNKNOWN_USER,
)
from gemawi_client.core.errors import ApiError
from gemawi_client.core.utils import temp_id, utcnow
from gemawi_client.domain.enums import DevTaskStatus, ModificationAction
from gemawi_client.domain.models import DevTaskModification
from gemawi_client.storage import StorageBackend
from gemawi_client.stores.auth import AuthStore
from gemawi_client.stores.base import Store
from gemawi_client.stores.resources import (
    DEV_TASKS,
    LOCAL_COLLECTIONS,
    RESOURCES,
    Record,
    Resource,
    SyncPolicy,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return utcnow().isoformat()


class DataStore(Store):
    def __init__(self, api: ApiClient, storage: StorageBackend, auth: AuthStore) -> None:
        super().__init__()
        self._api = api
        self._storage = storage
        self._auth = auth
        self._inflight = 0
        initial: Dict[str, Any] = {key: [] for key in RESOURCES}
        initial[DEV_TASKS.key] = []
        initial.update({key: [] for key in LOCAL_COLLECTIONS})
        self._init_state(is_loading=False, **initial)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resource(name: str) -> Resource:
        try:
            return RESOURCES[name]
        except KeyError:
            raise ValueError(f"Unknown collection: {name!r}") from None

    def collection(self, name: str) -> List[Record]:
        return list(self._state[name])

    def find(self, name: str, record_id: str) -> Optional[Record]:
        return next((r for r in self._state[name] if r.get("id") == record_id), None)

    def _append(self, key: str, record: Record) -> None:
        self.set_state(**{key: [*self._state[key], record]})

    def _patch(self, key: str, record_id: str, changes: Dict[str, Any]) -> None:
        self.set_state(**{
            key: [{**r, **changes} if r.get("id") == record_id else r for r in self._state[key]]
        })

    def _drop(self, key: str, record_id: str) -> None:
        self.set_state(**{key: [r for r in self._state[key] if r.get("id") != record_id]})

    async def _fetch(self, res: Resource, params: Optional[Dict[str, Any]] = None) -> List[Record]:
        self._inflight += 1
        self.set_state(is_loading=True)
        try:
            docs = await self._api.get(res.path, params=params)
        finally:
            self._inflight -= 1
            self.set_state(is_loading=self._inflight > 0)
        return [res.normalize(d) for d in (docs or [])]

    async def _after_mutation(self, res: Resource) -> None:
        await self.load(res.key)
        for other in res.reload_also:
            await self.load(other)

    # ------------------------------------------------------------------
    # Generic collection operations
    # ------------------------------------------------------------------

    async def load(self, name: str, **params: Any) -> List[Record]:
        """Replace the cached ``name`` collection with the backend's copy.

        Never raises for backend failures: the error is logged and the
        cache is kept (or emptied, for collections marked so).
        """
        if name == DEV_TASKS.key:
            return await self.load_dev_tasks()
        res = self._resource(name)
        try:
            records = await self._fetch(res, params or None)
        except ApiError as exc:
            logger.error("Failed to load %s: %s", name, exc)
            if res.empty_on_error:
                self.set_state(**{name: []})
            return self.collection(name)
        self.set_state(**{name: records})
        logger.debug("%s loaded: %d records", name, len(records))
        return records

    async def load_many(self, *names: str) -> None:
        """Load several collections concurrently."""
        await asyncio.gather(*(self.load(n) for n in names))

    async def add(self, name: str, payload: Dict[str, Any]) -> Optional[Record]:
        res = self._resource(name)
        try:
            created = await self._api.post(res.path, payload)
        except ApiError as exc:
            logger.error("Error adding %s: %s", name, exc)
            raise

        record = res.normalize(created) if isinstance(created, dict) else None
        if res.on_add is SyncPolicy.APPEND and record is not None:
            self._append(name, record)
            for other in res.reload_also:
                await self.load(other)
        else:
            await self._after_mutation(res)
        return record

    async def update(self, name: str, record_id: str, changes: Dict[str, Any]) -> None:
        res = self._resource(name)
        try:
            await self._api.put(f"{res.path}/{record_id}", changes)
        except ApiError as exc:
            logger.error("Error updating %s %s: %s", name, record_id, exc)
            raise

        if res.on_update is SyncPolicy.PATCH:
            self._patch(name, record_id, changes)
        elif name == "attendance":
            await self._reload_attendance_for(changes)
        else:
            await self._after_mutation(res)

    async def remove(self, name: str, record_id: str) -> None:
        res = self._resource(name)
        try:
            await self._api.delete(f"{res.path}/{record_id}")
        except ApiError as exc:
            logger.error("Error deleting %s %s: %s", name, record_id, exc)
            raise
        self._drop(name, record_id)

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------

    async def load_attendance(self, month: Optional[int] = None, year: Optional[int] = None) -> List[Record]:
        """Load attendance, optionally for one month (1-12) of one year."""
        if month and year:
            return await self.load("attendance", month=month, year=year)
        return await self.load("attendance")

    async def _reload_attendance_for(self, changes: Dict[str, Any]) -> None:
        # Attendance records carry a zero-based month.
        month, year = changes.get("month"), changes.get("year")
        if month is not None and year is not None:
            await self.load_attendance(int(month) + 1, int(year))
        else:
            await self.load_attendance()

    # ------------------------------------------------------------------
    # Comments and likes
    # ------------------------------------------------------------------

    async def _post_then_reload(self, name: str, path: str, body: Any = None) -> None:
        try:
            await self._api.post(path, body)
        except ApiError as exc:
            logger.error("Error posting to %s: %s", path, exc)
            raise
        await self.load(name)

    async def like_post(self, post_id: str) -> None:
        await self._post_then_reload("posts", f"/posts/{post_id}/like")

    async def add_task_comment(self, task_id: str, content: str) -> None:
        await self._post_then_reload("tasks", f"/tasks/{task_id}/comments", {"content": content})

    async def add_review_comment(self, review_id: str, content: str) -> None:
        await self._post_then_reload("reviews", f"/reviews/{review_id}/comments", {"content": content})

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def load_messages(self) -> List[Record]:
        return await self.load("chat_messages")

    async def add_chat_message(self, message: Dict[str, Any]) -> Optional[Record]:
        return await self.add("chat_messages", message)

    async def mark_message_as_read(self, message_id: str) -> None:
        try:
            await self._api.put(f"/messages/{message_id}/read")
        except ApiError as exc:
            logger.error("Failed to mark message %s as read: %s", message_id, exc)
            raise
        self._patch("chat_messages", message_id, {"isRead": True})

    def apply_incoming_message(self, data: Dict[str, Any], current_user_id: str) -> Optional[Record]:
        """Cache a message pushed over the realtime channel.

        Only messages addressed to ``current_user_id`` by someone else are
        kept; they get a temporary id that is never reconciled.
        """
        me = str(current_user_id)
        if str(data.get("receiverId")) != me or str(data.get("senderId")) == me:
            return None
        message = {
            "id": temp_id(),
            "senderId": data.get("senderId"),
            "receiverId": me,
            "content": data.get("content", ""),
            "timestamp": data.get("timestamp") or _now_iso(),
            "isRead": False,
        }
        self._append("chat_messages", message)
        return message

    # ------------------------------------------------------------------
    # Leave requests
    # ------------------------------------------------------------------

    async def add_leave_request(self, data: Dict[str, Any]) -> None:
        await self.add("leave_requests", data)

    async def update_leave_request_status(
        self,
        request_id: str,
        status: str,
        review_notes: Optional[str] = None,
        deduct_from_emergency: Optional[bool] = None,
    ) -> None:
        body = {
            "status": status,
            "reviewNotes": review_notes,
            "deductFromEmergency": deduct_from_emergency,
        }
        try:
            await self._api.patch(f"{LEAVE_REQUESTS_PATH}/{request_id}/status", body)
        except ApiError as exc:
            logger.error("Failed to update leave request %s: %s", request_id, exc)
            raise
        await self._after_mutation(RESOURCES["leave_requests"])

    async def update_leave_balance(self, employee_id: str, annual: float, emergency: float) -> None:
        body = {"employeeId": employee_id, "annual": annual, "emergency": emergency}
        try:
            await self._api.patch(f"{LEAVE_REQUESTS_PATH}/balance", body)
        except ApiError as exc:
            logger.error("Failed to update leave balance for %s: %s", employee_id, exc)
            raise
        await self.load("employees")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def add_registration_request(
        self,
        company_name: str,
        contact_name: str,
        email: str,
        phone: str,
        password: str,
        role: str = ROLE_EMPLOYEE,
        attempts: Optional[int] = None,
    ) -> Record:
        payload = {
            "companyName": company_name,
            "industry": REGISTRATION_INDUSTRY,
            "email": email,
            "phone": phone,
            "adminName": contact_name,
            "password": password,
            "subscriptionPlan": REGISTRATION_PLAN,
            "subscriptionDuration": REGISTRATION_DURATION_MONTHS,
        }
        response = await self._api.post(REGISTER_PATH, payload)
        response = response if isinstance(response, dict) else {}

        request = {
            "id": response.get("id") or response.get("_id") or temp_id("reg-"),
            "companyName": company_name,
            "contactName": contact_name,
            "email": email,
            "phone": phone,
            "password": "",
            "role": ROLE_GENERAL_MANAGER if role == "admin" else ROLE_EMPLOYEE,
            "status": "pending",
            "attempts": attempts if attempts is not None else 1,
            "createdAt": _now_iso(),
        }
        self._append("registration_requests", request)
        return request

    # ------------------------------------------------------------------
    # Dev tasks (local-storage fallback)
    # ------------------------------------------------------------------

    def _modification(self, action: ModificationAction, description: str, **extra: Any) -> Record:
        user = self._auth.user
        entry = DevTaskModification(
            id=temp_id(),
            user_id=user.id if user else "",
            user_name=(user.name if user else "") or UNKNOWN_USER,
            action=action.value,
            description=description,
            **extra,
        )
        return entry.to_json()

    def _set_dev_tasks(self, tasks: List[Record]) -> None:
        self.set_state(dev_tasks=tasks)
        self._storage.set_json(DEV_TASKS_KEY, tasks)

    def _apply_dev_task(self, task_id: str, changes: Dict[str, Any], modification: Optional[Record] = None) -> None:
        tasks = []
        for t in self._state["dev_tasks"]:
            if t.get("id") == task_id:
                t = {**t, **changes, "updatedAt": _now_iso()}
                if modification is not None:
                    t["modifications"] = [*(t.get("modifications") or []), modification]
            tasks.append(t)
        self._set_dev_tasks(tasks)

    async def load_dev_tasks(self) -> List[Record]:
        try:
            tasks = await self._fetch(DEV_TASKS)
        except ApiError as exc:
            logger.info("Loading dev tasks from local storage (%s)", exc)
            stored = self._storage.get_json(DEV_TASKS_KEY)
            if isinstance(stored, list):
                self.set_state(dev_tasks=stored)
            return self.collection("dev_tasks")
        self._set_dev_tasks(tasks)
        return tasks

    async def add_dev_task(self, task: Dict[str, Any]) -> Record:
        user = self._auth.user
        user_id = user.id if user else ""
        created = self._modification(
            ModificationAction.CREATED,
            f'Created task "{task.get("title", "")}"',
        )
        payload = {
            **task,
            "assignedTo": task.get("assignedTo") or user_id,
            "assignedBy": task.get("assignedBy") or user_id,
        }
        try:
            response = await self._api.post(DEV_TASKS.path, payload)
            new_task = {
                **DEV_TASKS.normalize(response or {}),
                "comments": [],
                "tags": task.get("tags") or [],
                "attachments": task.get("attachments") or [],
                "modifications": [created],
            }
        except ApiError as exc:
            logger.error("Error saving dev task to API, keeping it locally: %s", exc)
            now = _now_iso()
            new_task = {
                **task,
                "id": temp_id(),
                "createdAt": now,
                "updatedAt": now,
                "modifications": [created],
            }
        self._set_dev_tasks([new_task, *self._state["dev_tasks"]])
        return new_task

    async def update_dev_task(self, task_id: str, changes: Dict[str, Any]) -> None:
        edited = self._modification(ModificationAction.EDITED, "Edited task details")
        try:
            await self._api.put(f"{DEV_TASKS.path}/{task_id}", changes)
        except ApiError as exc:
            logger.info("Updating dev task %s locally only (%s)", task_id, exc)
        self._apply_dev_task(task_id, changes, edited)

    async def delete_dev_task(self, task_id: str) -> None:
        try:
            await self._api.delete(f"{DEV_TASKS.path}/{task_id}")
        except ApiError as exc:
            logger.info("Deleting dev task %s locally only (%s)", task_id, exc)
        self._set_dev_tasks([t for t in self._state["dev_tasks"] if t.get("id") != task_id])

    async def update_dev_task_status(self, task_id: str, status: str) -> None:
        existing = self.find("dev_tasks", task_id)
        old_status = (existing or {}).get("status") or ""
        status = DevTaskStatus(status).value
        change = self._modification(
            ModificationAction.UPDATED_STATUS,
            f'Changed status from "{old_status}" to "{status}"',
            field="status",
            old_value=old_status,
            new_value=status,
        )
        try:
            await self._api.patch(f"{DEV_TASKS.path}/{task_id}/status", {"status": status})
        except ApiError as exc:
            logger.info("Updating dev task %s status locally only (%s)", task_id, exc)

        changes: Dict[str, Any] = {"status": status}
        if status == DevTaskStatus.COMPLETED.value:
            changes["completedDate"] = _now_iso()
        self._apply_dev_task(task_id, changes, change)

    async def update_dev_task_testing_status(
        self,
        task_id: str,
        testing_status: str,
        notes: Optional[str] = None,
    ) -> None:
        try:
            await self._api.patch(
                f"{DEV_TASKS.path}/{task_id}/testing",
                {"testingStatus": testing_status, "testingNotes": notes},
            )
        except ApiError as exc:
            logger.info("Updating dev task %s testing status locally only (%s)", task_id, exc)

        existing = self.find("dev_tasks", task_id) or {}
        self._apply_dev_task(task_id, {
            "testingStatus": testing_status,
            "testingNotes": notes or existing.get("testingNotes"),
        })

    async def add_dev_task_comment(self, task_id: str, content: str) -> None:
        try:
            await self._api.post(f"{DEV_TASKS.path}/{task_id}/comments", {"content": content})
        except ApiError as exc:
            logger.error("Error adding dev task comment: %s", exc)
            raise
        await self.load_dev_tasks()
