"""
Centralized configuration for the Gemawi client.
All settings come from environment variables for 12-factor deployment.
"""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------
API_URL = os.environ.get("GEMAWI_API_URL", "http://localhost:3000/api").rstrip("/")
API_TIMEOUT_SECONDS = float(os.environ.get("GEMAWI_API_TIMEOUT_SECONDS", "10"))

# ---------------------------------------------------------------------------
# Local storage
# ---------------------------------------------------------------------------
STORAGE_DIR = os.environ.get(
    "GEMAWI_STORAGE_DIR",
    os.path.join(os.path.expanduser("~"), ".gemawi"),
)
REDIS_URL = os.environ.get("REDIS_URL", "").strip()
# Use an in-process dict instead of files (tests, throwaway sessions).
STORAGE_IN_MEMORY = _env_bool("GEMAWI_STORAGE_IN_MEMORY", False)

# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
# Desktop-style notifications for newly added entries.  A webhook URL turns on
# delivery to an external channel; LOG_NOTIFICATIONS mirrors them to the log.
NOTIFY_WEBHOOK_URL = os.environ.get("NOTIFY_WEBHOOK_URL", "").strip()
LOG_NOTIFICATIONS = _env_bool("LOG_NOTIFICATIONS", True)

# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------
BACKUP_INTERVAL_HOURS = float(os.environ.get("BACKUP_INTERVAL_HOURS", "24"))
