"""
Gemawi client — System-wide constants.

Storage keys, endpoint paths, role names and realtime event names live here.
"""

# ---------------------------------------------------------------------------
# Local storage keys
# ---------------------------------------------------------------------------

AUTH_KEY: str = "gemawi-auth"
SETTINGS_KEY: str = "gemawi-settings"
NOTIFICATIONS_KEY: str = "gemawi-notifications"
DEV_TASKS_KEY: str = "gemawi-dev-tasks"
LAST_BACKUP_KEY: str = "last-backup"

# Keys included in backups (everything the client persists under its prefix).
BACKUP_KEY_PREFIX: str = "gemawi-"

# ---------------------------------------------------------------------------
# REST endpoints (relative to config.API_URL)
# ---------------------------------------------------------------------------

LOGIN_PATH: str = "/auth/login"
ME_PATH: str = "/auth/me"
USERS_PATH: str = "/users"
REGISTER_PATH: str = "/register"
NOTIFICATIONS_PATH: str = "/notifications"
MESSAGES_PATH: str = "/messages"
LEAVE_REQUESTS_PATH: str = "/leave-requests"
DEV_TASKS_PATH: str = "/dev-tasks"

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

ROLE_SUPER_ADMIN: str = "super_admin"
ROLE_GENERAL_MANAGER: str = "general_manager"
ROLE_ADMINISTRATIVE_MANAGER: str = "administrative_manager"
ROLE_EMPLOYEE: str = "employee"

# Roles that bypass module permission checks.
FULL_ACCESS_ROLES = frozenset({
    ROLE_SUPER_ADMIN,
    ROLE_GENERAL_MANAGER,
    ROLE_ADMINISTRATIVE_MANAGER,
})

# ---------------------------------------------------------------------------
# Realtime events
# ---------------------------------------------------------------------------

EVENT_JOIN: str = "join"
EVENT_NEW_MESSAGE: str = "new-message"
EVENT_NEW_POST: str = "new-post"
EVENT_NEW_TASK_COMMENT: str = "new-task-comment"
EVENT_NOTIFICATION: str = "notification"
EVENT_DEV_TASK_CREATED: str = "dev-task-created"
EVENT_DEV_TASK_UPDATED: str = "dev-task-updated"
EVENT_DEV_TASK_DELETED: str = "dev-task-deleted"
EVENT_DEV_TASK_COMMENT: str = "dev-task-comment"

DEV_TASK_EVENTS = (
    EVENT_DEV_TASK_CREATED,
    EVENT_DEV_TASK_UPDATED,
    EVENT_DEV_TASK_DELETED,
    EVENT_DEV_TASK_COMMENT,
)

# ---------------------------------------------------------------------------
# Registration defaults sent to /register
# ---------------------------------------------------------------------------

REGISTRATION_INDUSTRY: str = "general"
REGISTRATION_PLAN: str = "basic"
REGISTRATION_DURATION_MONTHS: int = 3

# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

LOGIN_FAILED_MESSAGE: str = "Login failed"
UNKNOWN_AUTHOR: str = "Unknown"
UNKNOWN_USER: str = "Unknown User"
SUPPORTED_CURRENCIES = ("EGP", "SAR", "USD", "AED")
