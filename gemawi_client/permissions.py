"""
Role / module permission checks.

Full-access roles (super admin, general manager, administrative manager)
may do anything.  Everyone else needs an entry for the module in
``user.permissions`` listing the action, where ``view``/``read`` and
``write``/``edit``/``create``/``update`` are treated as synonyms.
"""

from __future__ import annotations

import logging
from typing import Optional

from gemawi_client.core.constants import FULL_ACCESS_ROLES
from gemawi_client.domain.models import User

logger = logging.getLogger(__name__)


MODULES = {
    "DASHBOARD": "dashboard",
    "ATTENDANCE": "attendance",
    "ATTENDANCE_SYSTEM": "attendance_system",
    "ATTENDANCE_MANAGEMENT": "attendance_management",
    "LEAVE_REQUESTS": "leave_requests",
    "DEPARTMENTS": "departments",
    "EMPLOYEES": "employees",
    "BRANCHES": "branches",
    "SALARIES": "salaries",
    "MEDIA_SALARIES": "media_salaries",
    "REVENUES": "revenues",
    "EXPENSES": "expenses",
    "CUSTODY": "custody",
    "TASKS": "tasks",
    "CHAT": "chat",
    "POSTS": "posts",
    "REVIEWS": "reviews",
    "REPORTS": "reports",
    "ADS_FUNDING": "ads_funding",
    "OCCASIONS": "occasions",
    "COMPLAINTS": "complaints",
    "COMMUNICATION": "communication",
    "SUBSCRIPTIONS": "subscriptions",
    "PERMISSIONS": "permissions",
}

ACTIONS = {
    "VIEW": "view",
    "WRITE": "write",
    "EDIT": "edit",
    "DELETE": "delete",
    "APPROVE": "approve",
    "EXPORT": "export",
    "COMMENT": "comment",
    "LIKE": "like",
    "RETURN": "return",
}

_SYNONYMS = (
    frozenset({"view", "read"}),
    frozenset({"write", "edit", "create", "update"}),
)


def _equivalent_actions(action: str) -> frozenset:
    for group in _SYNONYMS:
        if action in group:
            return group
    return frozenset({action})


def has_permission(user: Optional[User], module: str, action: str) -> bool:
    """Return True if ``user`` may perform ``action`` in ``module``."""
    if user is None:
        logger.debug("No user; denying %s on %s", action, module)
        return False

    if user.role in FULL_ACCESS_ROLES:
        return True

    entry = next((p for p in user.permissions if p.module == module), None)
    if entry is None:
        logger.debug("User %s has no permission entry for %s", user.name, module)
        return False

    allowed = not _equivalent_actions(action).isdisjoint(entry.actions)
    logger.debug("User %s %s %s in %s", user.name, "CAN" if allowed else "CANNOT", action, module)
    return allowed


def can_read(user: Optional[User], module: str) -> bool:
    return has_permission(user, module, "view")


def can_write(user: Optional[User], module: str) -> bool:
    return has_permission(user, module, "write")


def can_update(user: Optional[User], module: str) -> bool:
    return has_permission(user, module, "update")


def can_delete(user: Optional[User], module: str) -> bool:
    return has_permission(user, module, "delete")
