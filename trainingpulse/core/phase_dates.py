"""Date bookkeeping for subtask phase-status changes.

A subtask moves through dated phase statuses. Each dated status owns a start,
end and completion column; entering, leaving or rewinding statuses stamps or
clears those columns. Choosing "No Status" (the empty string) wipes every date.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil.parser import isoparse

NO_STATUS = ""


def as_utc(value: Any) -> Optional[datetime]:
    """Timezone-aware UTC datetime from a datetime or ISO string; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    moment = value if isinstance(value, datetime) else isoparse(str(value))
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class PhaseColumns:
    start: str
    end: Optional[str]
    completion: str


# Dated phase statuses in workflow order
PHASE_ORDER: tuple[str, ...] = (
    "alpha_draft",
    "alpha_review",
    "beta_revision",
    "beta_review",
    "final_revision",
    "final_signoff_sent",
    "final_signoff_received",
)

PHASE_COLUMNS: dict[str, PhaseColumns] = {
    status: PhaseColumns(
        start=f"{status}_start_date",
        end=None if status == "final_signoff_received" else f"{status}_end_date",
        completion=f"{status}_date",
    )
    for status in PHASE_ORDER
}

BASIC_DATE_COLUMNS: tuple[str, ...] = ("start_date", "finish_date", "completed_at")

COMPLETION_STATUSES = frozenset(
    {"final_revision", "final_signoff_sent", "final_signoff_received", "completed"}
)


def all_date_columns() -> list[str]:
    """Every date column a subtask can carry."""
    columns = list(BASIC_DATE_COLUMNS)
    for cols in PHASE_COLUMNS.values():
        columns.append(cols.start)
        if cols.end:
            columns.append(cols.end)
        columns.append(cols.completion)
    return columns


def has_dates(status: Optional[str]) -> bool:
    return status in PHASE_COLUMNS


def clears_dates(old_status: Optional[str], new_status: Optional[str]) -> bool:
    """True when a change would wipe recorded phase dates (needs confirmation)."""
    return new_status == NO_STATUS and has_dates(old_status)


def _set(updates: dict, changes: dict, current: dict, column: str, value: Any) -> None:
    updates[column] = value
    changes[column] = {"from": current.get(column), "to": value}


def _clear(updates: dict, changes: dict, current: dict, column: Optional[str]) -> None:
    if column and (current.get(column) or updates.get(column)):
        _set(updates, changes, current, column, None)


def phase_change_updates(
    current: dict[str, Any],
    new_status: str,
    now: datetime,
) -> tuple[dict[str, Any], dict[str, dict[str, Any]]]:
    """
    Compute the date column writes for moving ``current`` to ``new_status``.

    Args:
        current: Current subtask row
        new_status: Target phase status ("" for No Status)
        now: Timestamp to stamp

    Returns:
        (updates, changes) where updates maps column -> new value and
        changes maps column -> {"from", "to"} for the activity log
    """
    updates: dict[str, Any] = {}
    changes: dict[str, dict[str, Any]] = {}
    old_status = current.get("status") or NO_STATUS

    if new_status == old_status:
        return updates, changes

    if new_status == NO_STATUS:
        for column in all_date_columns():
            _clear(updates, changes, current, column)
        return updates, changes

    if old_status == "pending" and not current.get("start_date"):
        _set(updates, changes, current, "start_date", now)

    was_complete = old_status in COMPLETION_STATUSES
    is_complete = new_status in COMPLETION_STATUSES
    if is_complete and not was_complete and not current.get("finish_date"):
        _set(updates, changes, current, "finish_date", now)
    elif was_complete and not is_complete:
        _set(updates, changes, current, "finish_date", None)

    # Leaving a dated phase closes it out
    old_cols = PHASE_COLUMNS.get(old_status)
    if old_cols and old_cols.end and not current.get(old_cols.end):
        _set(updates, changes, current, old_cols.end, now)

    # Rewinding clears everything recorded for later phases
    if new_status in PHASE_ORDER and old_status in PHASE_ORDER:
        new_index = PHASE_ORDER.index(new_status)
        if new_index < PHASE_ORDER.index(old_status):
            for later in PHASE_ORDER[new_index + 1:]:
                cols = PHASE_COLUMNS[later]
                _clear(updates, changes, current, cols.start)
                _clear(updates, changes, current, cols.end)
                _clear(updates, changes, current, cols.completion)

    new_cols = PHASE_COLUMNS.get(new_status)
    if new_cols:
        _set(updates, changes, current, new_cols.start, now)
        _set(updates, changes, current, new_cols.completion, now)
        if new_cols.end:
            _set(updates, changes, current, new_cols.end, None)

    return updates, changes


def describe_status(status: str) -> str:
    """Human label for a status value, e.g. ``alpha_review`` -> ``Alpha Review``."""
    if not status:
        return "No Status"
    return " ".join(part.capitalize() for part in status.split("_"))


def clear_dates_warning(old_status: str) -> str:
    return (
        f'Changing from "{describe_status(old_status)}" to "No Status" will clear ALL '
        "phase dates, including every phase start, end and completion date and the "
        "basic task dates (start, finish, completed). This cannot be undone. Continue?"
    )
