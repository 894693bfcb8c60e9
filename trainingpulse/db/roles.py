"""Database operations for roles and their permission grants."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

SYSTEM_ROLES = frozenset({"admin", "manager", "designer", "reviewer", "viewer"})


def list_roles() -> list[dict[str, Any]]:
    """Roles with their permission names."""
    supabase = get_supabase()
    result = (
        supabase.table("roles")
        .select("*, role_permissions(permissions(id, name, category))")
        .order("name")
        .execute()
    )
    return [_flatten(row) for row in result.data or []]


def _flatten(row: dict[str, Any]) -> dict[str, Any]:
    grants = row.pop("role_permissions", None) or []
    row["permissions"] = [g["permissions"] for g in grants if g.get("permissions")]
    return row


def get_role(role_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("roles")
        .select("*, role_permissions(permissions(id, name, category))")
        .eq("id", str(role_id))
        .execute()
    )
    return _flatten(result.data[0]) if result.data else None


def get_role_by_name(name: str) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("roles")
        .select("*, role_permissions(permissions(id, name, category))")
        .eq("name", name)
        .execute()
    )
    return _flatten(result.data[0]) if result.data else None


def set_role_permissions(role_id: UUID | str, permission_ids: list[UUID]) -> None:
    supabase = get_supabase()
    supabase.table("role_permissions").delete().eq("role_id", str(role_id)).execute()
    if permission_ids:
        rows = [{"role_id": str(role_id), "permission_id": str(pid)} for pid in permission_ids]
        supabase.table("role_permissions").insert(rows).execute()


def create_role(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    permission_ids = data.pop("permission_ids", None) or []
    result = supabase.table("roles").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from role insert")
    role = result.data[0]
    set_role_permissions(role["id"], permission_ids)
    return get_role(role["id"]) or role


def update_role(role_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    permission_ids = data.pop("permission_ids", None)
    if not data and permission_ids is None:
        raise ValueError("No fields to update")
    if data:
        payload = {**to_row(data), "updated_at": utcnow_iso()}
        result = supabase.table("roles").update(payload).eq("id", str(role_id)).execute()
        if not result.data:
            raise ValueError(f"Role not found: {role_id}")
    if permission_ids is not None:
        set_role_permissions(role_id, permission_ids)
    role = get_role(role_id)
    if not role:
        raise ValueError(f"Role not found: {role_id}")
    return role


def delete_role(role_id: UUID) -> None:
    """Delete a custom role. Built-in roles cannot be removed."""
    role = get_role(role_id)
    if not role:
        raise ValueError(f"Role not found: {role_id}")
    if role["name"] in SYSTEM_ROLES:
        raise ValueError(f"Cannot delete system role '{role['name']}'")
    supabase = get_supabase()
    supabase.table("role_permissions").delete().eq("role_id", str(role_id)).execute()
    supabase.table("roles").delete().eq("id", str(role_id)).execute()
