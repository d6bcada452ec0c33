"""
gemawi_client.dashboard — Home-screen summary computed from cached data.

Works on the plain state dict of a ``DataStore`` so it can be called on a
snapshot without touching the network.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from gemawi_client.core.constants import SUPPORTED_CURRENCIES
from gemawi_client.core.utils import parse_datetime, utcnow
from gemawi_client.domain.enums import DevTaskStatus


@dataclass
class DevTaskCounts:
    pending: int = 0
    in_progress: int = 0
    testing: int = 0
    overdue: int = 0


@dataclass
class DashboardSummary:
    revenues_by_currency: Dict[str, float] = field(default_factory=dict)
    expenses_by_currency: Dict[str, float] = field(default_factory=dict)
    month_revenues_by_currency: Dict[str, float] = field(default_factory=dict)
    month_expenses_by_currency: Dict[str, float] = field(default_factory=dict)
    operational_expenses_by_currency: Dict[str, float] = field(default_factory=dict)
    net_profit_by_currency: Dict[str, float] = field(default_factory=dict)
    active_employees: int = 0
    dev_tasks: DevTaskCounts = field(default_factory=DevTaskCounts)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _amount(record: Dict[str, Any]) -> float:
    try:
        return float(record.get("amount") or 0)
    except (TypeError, ValueError):
        return 0.0


def _is_operational(expense: Dict[str, Any]) -> bool:
    # Expenses without a type predate the field and count as operational.
    return not expense.get("type") or expense.get("type") == "operational"


def _in_month(record: Dict[str, Any], today: datetime) -> bool:
    d = parse_datetime(record.get("date"))
    return d is not None and d.year == today.year and d.month == today.month


def totals_by_currency(records: Iterable[Dict[str, Any]]) -> Dict[str, float]:
    """Sum ``amount`` per supported currency; other currencies are ignored."""
    totals = {c: 0.0 for c in SUPPORTED_CURRENCIES}
    for r in records:
        currency = r.get("currency")
        if currency in totals:
            totals[currency] += _amount(r)
    return totals


def dev_task_counts(tasks: Iterable[Dict[str, Any]], user_id: str, today: datetime) -> DevTaskCounts:
    counts = DevTaskCounts()
    for task in tasks:
        if task.get("assignedTo") != user_id:
            continue
        status = task.get("status")
        if status == DevTaskStatus.PENDING.value:
            counts.pending += 1
        elif status == DevTaskStatus.IN_PROGRESS.value:
            counts.in_progress += 1
        elif status == DevTaskStatus.TESTING.value:
            counts.testing += 1

        due = parse_datetime(task.get("dueDate"))
        closed = (DevTaskStatus.COMPLETED.value, DevTaskStatus.BLOCKED.value)
        if due is not None and due < today and status not in closed:
            counts.overdue += 1
    return counts


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_dashboard(
    data_state: Dict[str, Any],
    user_id: str,
    today: Optional[datetime] = None,
) -> DashboardSummary:
    """
    Summarize a ``DataStore`` state snapshot for ``user_id``.

    Args:
        data_state: ``DataStore.get_state()`` (or any dict with the same keys).
        user_id:    Whose dev tasks to count.
        today:      Reference time for "current month" and "overdue";
                    defaults to now (UTC).
    """
    today = today or utcnow()
    if today.tzinfo is None:
        today = parse_datetime(today)

    revenues: List[Dict[str, Any]] = data_state.get("revenues") or []
    expenses: List[Dict[str, Any]] = data_state.get("expenses") or []
    employees = data_state.get("employees") or []

    month_revenues = totals_by_currency(r for r in revenues if _in_month(r, today))
    month_operational = totals_by_currency(
        e for e in expenses if _is_operational(e) and _in_month(e, today)
    )

    return DashboardSummary(
        revenues_by_currency=totals_by_currency(revenues),
        expenses_by_currency=totals_by_currency(e for e in expenses if _is_operational(e)),
        month_revenues_by_currency=month_revenues,
        month_expenses_by_currency=totals_by_currency(e for e in expenses if _in_month(e, today)),
        operational_expenses_by_currency=month_operational,
        net_profit_by_currency={c: month_revenues[c] - month_operational[c] for c in month_revenues},
        active_employees=sum(1 for e in employees if e.get("isActive")),
        dev_tasks=dev_task_counts(data_state.get("dev_tasks") or [], user_id, today),
    )
