"""Database operations for course priority lookup values."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase


class PriorityInUse(ValueError):
    pass


def list_priorities(include_inactive: bool = False) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("priorities").select("*")
    if not include_inactive:
        query = query.eq("is_active", True)
    return query.order("sort_order").order("created_at").execute().data or []


def get_priority(priority_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("priorities").select("*").eq("id", str(priority_id)).execute()
    return result.data[0] if result.data else None


def get_priority_by_value(value: str) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("priorities").select("*").eq("value", value.lower()).execute()
    return result.data[0] if result.data else None


def _clear_default(except_id: str | None = None) -> None:
    supabase = get_supabase()
    query = supabase.table("priorities").update({"is_default": False}).eq("is_default", True)
    if except_id:
        query = query.neq("id", except_id)
    query.execute()


def create_priority(data: dict[str, Any]) -> dict[str, Any]:
    """Insert a priority. Values are stored lowercase; a new default replaces the old one."""
    supabase = get_supabase()
    row = to_row({**data, "value": data["value"].lower()})
    if row.get("is_default"):
        _clear_default()
    result = supabase.table("priorities").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from priority insert")
    return result.data[0]


def update_priority(priority_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    if data.get("is_default"):
        _clear_default(except_id=str(priority_id))
    payload = {**to_row(data), "updated_at": utcnow_iso()}
    result = supabase.table("priorities").update(payload).eq("id", str(priority_id)).execute()
    if not result.data:
        raise ValueError(f"Priority not found: {priority_id}")
    return result.data[0]


def delete_priority(priority_id: UUID) -> None:
    """Deactivate a priority unless courses still use it."""
    supabase = get_supabase()
    priority = get_priority(priority_id)
    if not priority:
        raise ValueError(f"Priority not found: {priority_id}")
    in_use = (
        supabase.table("courses")
        .select("id", count="exact")
        .eq("priority", priority["value"])
        .execute()
    )
    if in_use.count:
        raise PriorityInUse(f"Priority '{priority['value']}' is used by {in_use.count} course(s)")
    supabase.table("priorities").update({"is_active": False, "updated_at": utcnow_iso()}).eq(
        "id", str(priority_id)
    ).execute()
