"""
gemawi_client.domain.models — Typed models for the records the client owns.

Backend documents travel in camelCase with a Mongo-style ``_id``; these
models accept either ``_id`` or ``id`` and dump back to camelCase so the
persisted JSON matches what the backend and the web client use.

Collections cached by the data store stay plain dicts; only the session
user, notifications, dev-task history entries and settings are modelled.

Import pattern::

    from gemawi_client.domain.models import User, Notification
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from gemawi_client.core.utils import parse_datetime, ref_id, utcnow
from gemawi_client.domain.enums import Language, Theme


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "_id" in data:
            data = dict(data)
            data["id"] = data.pop("_id") or data.get("id")
        return data

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Session user
# ---------------------------------------------------------------------------

class Permission(BaseModel):
    module: str
    actions: List[str] = Field(default_factory=list)


class User(_Document):
    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = "employee"
    company_id: Optional[str] = None
    department_id: Optional[str] = None
    is_active: bool = True
    permissions: List[Permission] = Field(default_factory=list)
    language: str = Language.ARABIC.value

    @field_validator("company_id", "department_id", mode="before")
    @classmethod
    def _flatten_refs(cls, v: Any) -> Any:
        return ref_id(v)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class Notification(_Document):
    id: str
    user_id: str = ""
    type: str = "system"
    title: str = ""
    message: str = ""
    is_read: bool = False
    link: Optional[str] = None
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("user_id", mode="before")
    @classmethod
    def _flatten_user(cls, v: Any) -> Any:
        return ref_id(v) or ""

    @field_validator("sender_id", mode="before")
    @classmethod
    def _flatten_sender(cls, v: Any) -> Any:
        return ref_id(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, v: Any) -> Any:
        return parse_datetime(v) or utcnow()


# ---------------------------------------------------------------------------
# Dev-task history
# ---------------------------------------------------------------------------

class DevTaskModification(_Document):
    """One entry of a dev task's client-side change log."""

    id: str
    user_id: str = ""
    user_name: str = ""
    action: str
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    description: str = ""
    timestamp: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    language: Language = Language.ARABIC
    theme: Theme = Theme.LIGHT
