"""Database operations for subtask phase statuses.

Phase statuses carry the completion percentage used for course progress.
At most one phase status is the default for newly added subtasks.
"""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


def list_phase_statuses(include_inactive: bool = False) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("phase_statuses").select("*")
    if not include_inactive:
        query = query.eq("is_active", True)
    return query.order("sort_order").execute().data or []


def get_phase_status(status_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("phase_statuses").select("*").eq("id", str(status_id)).execute()
    return result.data[0] if result.data else None


def get_default_phase_status() -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("phase_statuses")
        .select("*")
        .eq("is_default", True)
        .eq("is_active", True)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def _clear_default(except_id: str | None = None) -> None:
    supabase = get_supabase()
    query = supabase.table("phase_statuses").update({"is_default": False}).eq("is_default", True)
    if except_id:
        query = query.neq("id", except_id)
    query.execute()


def create_phase_status(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    if data.get("is_default"):
        _clear_default()
    result = supabase.table("phase_statuses").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from phase status insert")
    return result.data[0]


def update_phase_status(status_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    if data.get("is_default"):
        _clear_default(except_id=str(status_id))
    payload = {**to_row(data), "updated_at": utcnow_iso()}
    result = supabase.table("phase_statuses").update(payload).eq("id", str(status_id)).execute()
    if not result.data:
        raise ValueError(f"Phase status not found: {status_id}")
    return result.data[0]


def delete_phase_status(status_id: UUID) -> None:
    supabase = get_supabase()
    status = get_phase_status(status_id)
    if not status:
        raise ValueError(f"Phase status not found: {status_id}")
    in_use = (
        supabase.table("course_subtasks")
        .select("id", count="exact")
        .eq("status", status["value"])
        .execute()
    )
    if in_use.count:
        raise ValueError(f"Phase status '{status['value']}' is used by {in_use.count} subtask(s)")
    supabase.table("phase_statuses").delete().eq("id", str(status_id)).execute()


def reorder_phase_statuses(status_ids: list[UUID]) -> list[dict[str, Any]]:
    """Set sort_order from the position of each id (1-based)."""
    supabase = get_supabase()
    for index, status_id in enumerate(status_ids, start=1):
        supabase.table("phase_statuses").update({"sort_order": index}).eq(
            "id", str(status_id)
        ).execute()
    logger.info(f"Reordered {len(status_ids)} phase statuses")
    return list_phase_statuses(include_inactive=True)
