"""Database operations for course subtasks (phases) and phase-status history."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.core.phase_dates import NO_STATUS, phase_change_updates
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


# ============================================================================
# Subtask CRUD
# ============================================================================


def list_subtasks(course_id: UUID) -> list[dict[str, Any]]:
    """List a course's subtasks in display order."""
    supabase = get_supabase()
    result = (
        supabase.table("course_subtasks")
        .select("*")
        .eq("course_id", str(course_id))
        .order("order_index")
        .execute()
    )
    return result.data or []


def get_subtask(course_id: UUID, subtask_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("course_subtasks")
        .select("*")
        .eq("id", str(subtask_id))
        .eq("course_id", str(course_id))
        .execute()
    )
    return result.data[0] if result.data else None


def create_subtask(course_id: UUID, data: dict[str, Any], created_by: UUID | None = None) -> dict[str, Any]:
    """Insert a subtask; a non-empty initial status opens its history entry."""
    supabase = get_supabase()
    now = datetime.now(timezone.utc)
    row = to_row(data)
    row["course_id"] = str(course_id)

    status = row.get("status") or NO_STATUS
    if status:
        updates, _ = phase_change_updates({"status": NO_STATUS}, status, now)
        row.update(to_row(updates))

    result = supabase.table("course_subtasks").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from subtask insert")
    subtask = result.data[0]

    if status:
        record_phase_change(subtask, None, status, changed_by=created_by, now=now)
    return subtask


def update_subtask(
    course_id: UUID,
    subtask_id: UUID,
    data: dict[str, Any],
    changed_by: UUID | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Update a subtask, applying phase date bookkeeping on status changes.

    Returns:
        (updated row, changes) where changes maps column -> {"from", "to"}

    Raises:
        ValueError: If the subtask does not exist or there is nothing to update
    """
    current = get_subtask(course_id, subtask_id)
    if not current:
        raise ValueError(f"Subtask not found: {subtask_id}")
    if not data:
        raise ValueError("No fields to update")

    now = datetime.now(timezone.utc)
    updates = dict(data)
    changes: dict[str, Any] = {
        k: {"from": current.get(k), "to": v} for k, v in data.items() if current.get(k) != v
    }

    old_status = current.get("status") or NO_STATUS
    new_status = data.get("status")
    status_changed = new_status is not None and new_status != old_status
    if status_changed:
        date_updates, date_changes = phase_change_updates(current, new_status, now)
        updates.update(date_updates)
        changes.update(date_changes)

    updates["updated_at"] = now.isoformat()
    supabase = get_supabase()
    result = (
        supabase.table("course_subtasks")
        .update(to_row(updates))
        .eq("id", str(subtask_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Subtask not found: {subtask_id}")
    subtask = result.data[0]

    if status_changed:
        record_phase_change(subtask, old_status, new_status, changed_by=changed_by, now=now)
        logger.info(f"Subtask {subtask_id} status {old_status!r} -> {new_status!r}")

    return subtask, changes


def delete_subtask(course_id: UUID, subtask_id: UUID) -> bool:
    supabase = get_supabase()
    result = (
        supabase.table("course_subtasks")
        .delete()
        .eq("id", str(subtask_id))
        .eq("course_id", str(course_id))
        .execute()
    )
    return bool(result.data)


# ============================================================================
# Phase status history
# ============================================================================


def record_phase_change(
    subtask: dict[str, Any],
    old_status: str | None,
    new_status: str,
    changed_by: UUID | None = None,
    now: datetime | None = None,
) -> None:
    """Close the open history entry for the subtask and open one for the new status."""
    supabase = get_supabase()
    stamp = (now or datetime.now(timezone.utc)).isoformat()

    if old_status:
        (
            supabase.table("phase_status_history")
            .update({"finished_at": stamp})
            .eq("subtask_id", str(subtask["id"]))
            .is_("finished_at", "null")
            .execute()
        )

    if new_status:
        row: dict[str, Any] = {
            "subtask_id": str(subtask["id"]),
            "course_id": str(subtask["course_id"]),
            "status": new_status,
            "started_at": stamp,
        }
        if changed_by:
            row["changed_by"] = str(changed_by)
        supabase.table("phase_status_history").insert(row).execute()


def list_phase_history(course_id: UUID) -> list[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("phase_status_history")
        .select("*")
        .eq("course_id", str(course_id))
        .order("started_at")
        .execute()
    )
    return result.data or []


def get_phase_history_entry(subtask_id: UUID, history_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("phase_status_history")
        .select("*")
        .eq("id", str(history_id))
        .eq("subtask_id", str(subtask_id))
        .execute()
    )
    return result.data[0] if result.data else None


def update_phase_history(subtask_id: UUID, history_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    """Correct the dates of one history entry."""
    supabase = get_supabase()
    if not data:
        raise ValueError("No fields to update")
    payload = to_row(data)
    payload["updated_at"] = utcnow_iso()
    result = (
        supabase.table("phase_status_history")
        .update(payload)
        .eq("id", str(history_id))
        .eq("subtask_id", str(subtask_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"History entry not found: {history_id}")
    return result.data[0]
