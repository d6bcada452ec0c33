"""
gemawi_client.domain.enums — All enumerations used across the client.

Keep this module import-clean (stdlib only).
"""

from enum import Enum


class NotificationType(str, Enum):
    MESSAGE  = "message"
    TASK     = "task"
    PAYROLL  = "payroll"
    APPROVAL = "approval"
    SYSTEM   = "system"


class DevTaskStatus(str, Enum):
    PENDING     = "pending"
    IN_PROGRESS = "in_progress"
    TESTING     = "testing"
    COMPLETED   = "completed"
    BLOCKED     = "blocked"


class ModificationAction(str, Enum):
    CREATED        = "created"
    EDITED         = "edited"
    UPDATED_STATUS = "updated_status"


class Language(str, Enum):
    ARABIC  = "ar"
    ENGLISH = "en"

    @property
    def direction(self) -> str:
        return "rtl" if self is Language.ARABIC else "ltr"


class Theme(str, Enum):
    LIGHT = "light"
    DARK  = "dark"

    def toggled(self) -> "Theme":
        return Theme.DARK if self is Theme.LIGHT else Theme.LIGHT
