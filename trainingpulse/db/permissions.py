"""Database operations for permissions and permission lookups by role."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_row
from trainingpulse.db.supabase_client import get_supabase


def list_permissions(category: str | None = None) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("permissions").select("*")
    if category:
        query = query.eq("category", category)
    return query.order("category").order("name").execute().data or []


def list_grouped() -> dict[str, list[dict[str, Any]]]:
    """Permissions grouped by category."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for permission in list_permissions():
        grouped.setdefault(permission.get("category") or "general", []).append(permission)
    return grouped


def list_categories() -> list[str]:
    return sorted({p.get("category") or "general" for p in list_permissions()})


def get_permission(permission_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("permissions").select("*").eq("id", str(permission_id)).execute()
    return result.data[0] if result.data else None


def create_permission(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    result = supabase.table("permissions").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from permission insert")
    return result.data[0]


def update_permission(permission_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    result = (
        supabase.table("permissions").update(to_row(data)).eq("id", str(permission_id)).execute()
    )
    if not result.data:
        raise ValueError(f"Permission not found: {permission_id}")
    return result.data[0]


def delete_permission(permission_id: UUID) -> None:
    supabase = get_supabase()
    supabase.table("role_permissions").delete().eq("permission_id", str(permission_id)).execute()
    supabase.table("permissions").delete().eq("id", str(permission_id)).execute()


def permissions_for_role(role_name: str) -> list[str]:
    """Permission names granted to a role."""
    supabase = get_supabase()
    result = (
        supabase.table("roles")
        .select("role_permissions(permissions(name))")
        .eq("name", role_name)
        .execute()
    )
    if not result.data:
        return []
    grants = result.data[0].get("role_permissions") or []
    return sorted(g["permissions"]["name"] for g in grants if g.get("permissions"))
