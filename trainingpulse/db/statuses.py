"""Database operations for course status lookup values."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase


def list_statuses(include_inactive: bool = False) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("course_statuses").select("*")
    if not include_inactive:
        query = query.eq("is_active", True)
    return query.order("sort_order").execute().data or []


def get_status(status_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("course_statuses").select("*").eq("id", str(status_id)).execute()
    return result.data[0] if result.data else None


def create_status(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    result = supabase.table("course_statuses").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from status insert")
    return result.data[0]


def update_status(status_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    payload = {**to_row(data), "updated_at": utcnow_iso()}
    result = supabase.table("course_statuses").update(payload).eq("id", str(status_id)).execute()
    if not result.data:
        raise ValueError(f"Status not found: {status_id}")
    return result.data[0]


def delete_status(status_id: UUID) -> None:
    """Delete a status value unless courses still use it."""
    supabase = get_supabase()
    status = get_status(status_id)
    if not status:
        raise ValueError(f"Status not found: {status_id}")
    in_use = (
        supabase.table("courses")
        .select("id", count="exact")
        .eq("status", status["value"])
        .execute()
    )
    if in_use.count:
        raise ValueError(f"Status '{status['value']}' is used by {in_use.count} course(s)")
    supabase.table("course_statuses").delete().eq("id", str(status_id)).execute()
