"""Presentation-independent helpers for lists, badges, tabs, dialogs and the activity feed."""

import inspect
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Callable, Optional

from dateutil.parser import isoparse

from trainingpulse.core.config import Settings
from trainingpulse.core.logging import get_logger
from trainingpulse.core.phase_dates import describe_status

logger = get_logger(__name__)


# ============================================================================
# Badges
# ============================================================================

STATUS_VARIANTS = {
    "": "default",
    "draft": "default",
    "planning": "default",
    "not_started": "default",
    "archived": "default",
    "content_development": "info",
    "in_progress": "info",
    "alpha_review": "info",
    "review": "warning",
    "beta_review": "warning",
    "approval": "warning",
    "legal_review": "warning",
    "published": "success",
    "completed": "success",
    "final_revision": "success",
    "final_signoff_received": "success",
    "cancelled": "danger",
    "overdue": "danger",
    "on_hold": "purple",
}

PRIORITY_VARIANTS = {
    "low": "default",
    "normal": "info",
    "medium": "info",
    "high": "warning",
    "urgent": "danger",
    "critical": "danger",
}

ROLE_VARIANTS = {
    "admin": "purple",
    "manager": "info",
    "designer": "success",
    "reviewer": "warning",
    "viewer": "default",
}


def status_badge(status: Optional[str]) -> tuple[str, str]:
    """``(label, variant)`` for a course or phase status."""
    status = (status or "").strip().lower()
    return describe_status(status), STATUS_VARIANTS.get(status, "default")


def priority_badge(priority: Optional[str]) -> tuple[str, str]:
    priority = (priority or "low").strip().lower()
    return priority.capitalize(), PRIORITY_VARIANTS.get(priority, "default")


def role_badge(role: Optional[str]) -> tuple[str, str]:
    role = (role or "viewer").strip().lower()
    return role.capitalize(), ROLE_VARIANTS.get(role, "default")


# ============================================================================
# Formatting
# ============================================================================


def _parse(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = isoparse(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_relative_time(value: Any, now: Optional[datetime] = None) -> str:
    """``5 minutes ago`` style distance between ``value`` and ``now``. Unparseable input gives ''."""
    moment = _parse(value)
    if moment is None:
        return ""
    now = now or datetime.now(timezone.utc)
    seconds = (now - moment).total_seconds()
    future = seconds < 0
    seconds = abs(seconds)

    if seconds < 60:
        text = "less than a minute"
    elif seconds < 3600:
        text = _plural(round(seconds / 60), "minute")
    elif seconds < 86400:
        text = f"about {_plural(round(seconds / 3600), 'hour')}"
    elif seconds < 30 * 86400:
        text = _plural(round(seconds / 86400), "day")
    elif seconds < 365 * 86400:
        text = f"about {_plural(round(seconds / (30 * 86400)), 'month')}"
    else:
        text = f"about {_plural(round(seconds / (365 * 86400)), 'year')}"
    return f"in {text}" if future else f"{text} ago"


def format_duration(hours: Optional[float]) -> str:
    if not hours or hours < 0:
        return "0h"
    if hours < 1:
        return f"{round(hours * 60)}m"
    if hours < 24:
        whole = math.floor(hours)
        minutes = round((hours - whole) * 60)
        return f"{whole}h {minutes}m" if minutes else f"{whole}h"
    days = math.floor(hours / 24)
    remaining = round(hours % 24)
    return f"{days}d {remaining}h" if remaining else f"{days}d"


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {units[exponent]}"


def upload_error(filename: str, size: int, settings: Settings) -> Optional[str]:
    """Why a file may not be uploaded under the configured limits, or None when it may."""
    if size > settings.MAX_UPLOAD_BYTES:
        return f'File "{filename}" is too large. Maximum size is {format_file_size(settings.MAX_UPLOAD_BYTES)}'
    extension = PurePath(filename).suffix.lstrip(".").lower()
    if extension not in settings.allowed_upload_types:
        return f'File type not allowed for "{filename}"'
    return None


# ============================================================================
# Activity feed
# ============================================================================

ENTITY_LABELS = {
    "course": "Course",
    "subtask": "Phase",
    "task": "Task",
    "program": "Program",
    "team": "Team",
    "user": "User",
    "comment": "Comment",
    "attachment": "File",
    "workflow": "Workflow",
}

_ACTION_TEMPLATES = {
    "created": "created a new {entity}",
    "deleted": "deleted {entity}",
    "replied": "replied to a comment on {entity}",
    "assigned": "assigned {entity}",
    "unassigned": "unassigned {entity}",
    "completed": "completed {entity}",
    "duplicated": "duplicated {entity}",
    "uploaded": "uploaded a file to {entity}",
    "started": "started working on {entity}",
    "paused": "paused work on {entity}",
    "resumed": "resumed work on {entity}",
}


def activity_message(entry: dict[str, Any]) -> str:
    action = entry.get("action") or ""
    entity_type = entry.get("entity_type") or ""
    entity = ENTITY_LABELS.get(entity_type, entity_type).lower()
    details = entry.get("details") or entry.get("metadata") or {}
    changes = entry.get("changes") or details.get("changes") or {}

    if action == "updated":
        fields = list(changes) or details.get("fields") or []
        return f"updated {entity} ({', '.join(fields)})" if fields else f"updated {entity}"
    if action == "status_changed":
        target = details.get("to") or (changes.get("status") if isinstance(changes, dict) else None)
        if isinstance(target, dict):
            target = target.get("to")
        return f"changed {entity} status to {target}" if target else f"changed {entity} status"
    if action == "commented":
        content = details.get("content") or ""
        if content:
            snippet = content[:50] + ("..." if len(content) > 50 else "")
            return f'commented on {entity}: "{snippet}"'
        return f"commented on {entity}"
    template = _ACTION_TEMPLATES.get(action)
    if template:
        return template.format(entity=entity)
    return f"performed {action} on {entity}"


def format_activity(entry: dict[str, Any], now: Optional[datetime] = None) -> dict[str, str]:
    """Actor, message and relative time for one activity row."""
    actor = entry.get("user_name") or (entry.get("users") or {}).get("name") or "Someone"
    return {
        "actor": actor,
        "message": activity_message(entry),
        "time": format_relative_time(entry.get("created_at"), now),
    }


# ============================================================================
# Data table
# ============================================================================


@dataclass
class Column:
    key: str
    label: str
    sortable: bool = True
    searchable: bool = True


def _sort_key(value: Any) -> tuple:
    # None sorts last in ascending order
    if value is None:
        return (1, "")
    if isinstance(value, str):
        return (0, value.lower())
    return (0, value)


class DataTable:
    """Search, sort and pagination over a list of dict rows."""

    def __init__(self, rows: list[dict[str, Any]], columns: list[Column], page_size: int = 20):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.rows = rows
        self.columns = columns
        self.page_size = page_size
        self.search = ""
        self.sort_by: Optional[str] = None
        self.sort_order = "asc"
        self.page = 1

    def set_rows(self, rows: list[dict[str, Any]]) -> None:
        self.rows = rows
        self.page = min(self.page, self.page_count)

    def set_search(self, text: str) -> None:
        self.search = text
        self.page = 1

    def toggle_sort(self, key: str) -> None:
        """Sort by ``key``; a second click on the same column flips the order."""
        column = next((c for c in self.columns if c.key == key), None)
        if column is None or not column.sortable:
            raise ValueError(f"Column is not sortable: {key}")
        if self.sort_by == key and self.sort_order == "asc":
            self.sort_order = "desc"
        else:
            self.sort_order = "asc"
        self.sort_by = key

    def filtered(self) -> list[dict[str, Any]]:
        text = self.search.strip().lower()
        rows = self.rows
        if text:
            keys = [c.key for c in self.columns if c.searchable]
            rows = [r for r in rows if any(text in str(r.get(k) or "").lower() for k in keys)]
        if self.sort_by:
            present = [r for r in rows if r.get(self.sort_by) is not None]
            missing = [r for r in rows if r.get(self.sort_by) is None]
            present.sort(key=lambda r: _sort_key(r.get(self.sort_by)), reverse=self.sort_order == "desc")
            rows = present + missing
        return rows

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self.filtered()) / self.page_size))

    def go_to(self, page: int) -> None:
        self.page = max(1, min(page, self.page_count))

    def visible_rows(self) -> list[dict[str, Any]]:
        start = (self.page - 1) * self.page_size
        return self.filtered()[start:start + self.page_size]


# ============================================================================
# Tabs and modal
# ============================================================================


class Tabs:
    def __init__(self, tabs: list[str], active: Optional[str] = None):
        if not tabs:
            raise ValueError("Tabs need at least one tab")
        self.tabs = tabs
        self.active = tabs[0]
        if active is not None:
            self.select(active)

    def select(self, tab: str) -> None:
        if tab not in self.tabs:
            raise ValueError(f"Unknown tab: {tab}")
        self.active = tab

    def is_active(self, tab: str) -> bool:
        return self.active == tab


@dataclass
class Modal:
    """Open/close state for a dialog. ``confirm`` runs ``on_confirm`` and closes on success."""

    title: str
    on_confirm: Optional[Callable[[Any], Any]] = None
    is_open: bool = False
    payload: Any = None
    error: Optional[str] = field(default=None)

    def open(self, payload: Any = None) -> None:
        self.is_open = True
        self.payload = payload
        self.error = None

    def close(self) -> None:
        self.is_open = False
        self.payload = None
        self.error = None

    async def confirm(self) -> Any:
        if not self.is_open:
            raise RuntimeError(f"Modal {self.title!r} is not open")
        result = None
        if self.on_confirm is not None:
            try:
                result = self.on_confirm(self.payload)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.warning(f"Modal {self.title!r} action failed: {e}")
                self.error = str(e)
                raise
        self.close()
        return result
