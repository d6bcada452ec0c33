"""
Lightweight runtime metrics for the client.

Uses in-process counters so it works without extra dependencies.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Dict


class _RuntimeMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._request_errors = 0
        self._notifications_delivered = 0
        self._error_timestamps: Deque[float] = deque()

    def record_request(self, ok: bool, ts: float | None = None) -> None:
        now = ts if ts is not None else time.time()
        with self._lock:
            self._requests += 1
            if not ok:
                self._request_errors += 1
                self._error_timestamps.append(now)
            self._prune_locked(now)

    def increment_notifications_delivered(self, amount: int = 1) -> None:
        with self._lock:
            self._notifications_delivered += max(0, int(amount))

    def snapshot(self) -> Dict[str, float | int]:
        now = time.time()
        with self._lock:
            self._prune_locked(now)
            error_rate = (self._request_errors / self._requests) if self._requests else 0.0
            return {
                "requests": self._requests,
                "request_errors": self._request_errors,
                "request_error_rate": round(error_rate, 4),
                "errors_last_hour": len(self._error_timestamps),
                "notifications_delivered": self._notifications_delivered,
            }

    def reset_for_tests(self) -> None:
        with self._lock:
            self._requests = 0
            self._request_errors = 0
            self._notifications_delivered = 0
            self._error_timestamps.clear()

    def _prune_locked(self, now: float) -> None:
        cutoff = now - 3600.0
        while self._error_timestamps and self._error_timestamps[0] < cutoff:
            self._error_timestamps.popleft()


_METRICS = _RuntimeMetrics()


def record_request(ok: bool) -> None:
    _METRICS.record_request(ok)


def increment_notifications_delivered(amount: int = 1) -> None:
    _METRICS.increment_notifications_delivered(amount)


def metrics_snapshot() -> Dict[str, float | int]:
    return _METRICS.snapshot()


def reset_metrics_for_tests() -> None:
    _METRICS.reset_for_tests()
