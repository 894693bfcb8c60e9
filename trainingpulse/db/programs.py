"""Database operations for programs (course groupings such as departments or clients)."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase


def list_programs(is_active: bool | None = None) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("programs").select("*, courses(count)")
    if is_active is not None:
        query = query.eq("is_active", is_active)
    result = query.order("name").execute()
    programs = []
    for row in result.data or []:
        courses = row.pop("courses", None) or [{}]
        row["course_count"] = courses[0].get("count", 0)
        programs.append(row)
    return programs


def get_program(program_id: UUID) -> Optional[dict[str, Any]]:
    """Get a program with its members and courses."""
    supabase = get_supabase()
    result = supabase.table("programs").select("*").eq("id", str(program_id)).execute()
    if not result.data:
        return None
    program = result.data[0]
    members = (
        supabase.table("program_members")
        .select("role, users(id, name, email, role)")
        .eq("program_id", str(program_id))
        .execute()
    )
    program["members"] = [
        {**(m.get("users") or {}), "program_role": m.get("role")} for m in members.data or []
    ]
    courses = (
        supabase.table("courses")
        .select("id, title, status, priority, due_date")
        .eq("program_id", str(program_id))
        .order("due_date")
        .execute()
    )
    program["courses"] = courses.data or []
    return program


def create_program(data: dict[str, Any], created_by: UUID | None = None) -> dict[str, Any]:
    supabase = get_supabase()
    row = to_row({k: v for k, v in data.items() if v is not None})
    if created_by:
        row["created_by"] = str(created_by)
    result = supabase.table("programs").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from program insert")
    return result.data[0]


def update_program(program_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    if not data:
        raise ValueError("No fields to update")
    payload = to_row(data)
    payload["updated_at"] = utcnow_iso()
    result = supabase.table("programs").update(payload).eq("id", str(program_id)).execute()
    if not result.data:
        raise ValueError(f"Program not found: {program_id}")
    return result.data[0]


def delete_program(program_id: UUID) -> None:
    """Delete a program; its courses are detached, not deleted."""
    supabase = get_supabase()
    supabase.table("courses").update({"program_id": None}).eq("program_id", str(program_id)).execute()
    supabase.table("programs").delete().eq("id", str(program_id)).execute()


def add_member(program_id: UUID, user_id: UUID, role: str = "member") -> dict[str, Any]:
    supabase = get_supabase()
    result = (
        supabase.table("program_members")
        .upsert(
            {"program_id": str(program_id), "user_id": str(user_id), "role": role},
            on_conflict="program_id,user_id",
        )
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from program member upsert")
    return result.data[0]


def remove_member(program_id: UUID, user_id: UUID) -> None:
    supabase = get_supabase()
    supabase.table("program_members").delete().eq("program_id", str(program_id)).eq(
        "user_id", str(user_id)
    ).execute()
