"""
gemawi_client.domain — enums and typed models shared by every layer.
"""

from gemawi_client.domain.enums import (  # noqa: F401
    DevTaskStatus,
    Language,
    ModificationAction,
    NotificationType,
    Theme,
)
from gemawi_client.domain.models import (  # noqa: F401
    DevTaskModification,
    Notification,
    Permission,
    Settings,
    User,
)
