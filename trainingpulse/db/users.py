"""Database operations for users."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row, to_value
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


def get_user(user_id: str | UUID) -> Optional[dict[str, Any]]:
    """Get a user by ID."""
    supabase = get_supabase()
    result = supabase.table("users").select("*").eq("id", str(user_id)).execute()
    return result.data[0] if result.data else None


def get_user_by_email(email: str) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("users").select("*").eq("email", email.lower()).execute()
    return result.data[0] if result.data else None


def list_users(
    role: str | None = None,
    team_id: UUID | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """List users with optional filters. Returns {"users", "total"}."""
    supabase = get_supabase()
    query = supabase.table("users").select("*", count="exact")
    if role:
        query = query.eq("role", role)
    if team_id:
        query = query.eq("team_id", str(team_id))
    if is_active is not None:
        query = query.eq("is_active", is_active)
    if search:
        query = query.or_(f"name.ilike.%{search}%,email.ilike.%{search}%")
    result = query.order("name").range(offset, offset + limit - 1).execute()
    return {"users": result.data or [], "total": result.count or 0}


def create_user(user_id: str | UUID, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a users row for an auth identity."""
    supabase = get_supabase()
    row = {
        "id": str(user_id),
        "email": data["email"].lower(),
        "name": data["name"],
        "role": to_value(data.get("role", "viewer")),
        "team_id": str(data["team_id"]) if data.get("team_id") else None,
        "is_active": True,
    }
    result = supabase.table("users").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from user insert")
    logger.info(f"Created user {row['email']} with role {row['role']}")
    return result.data[0]


def update_user(user_id: str | UUID, data: dict[str, Any]) -> dict[str, Any]:
    """Update a user's fields. Only keys present in ``data`` are written."""
    supabase = get_supabase()
    if not data:
        raise ValueError("No fields to update")
    update_data = to_row(data)
    if "email" in update_data and update_data["email"]:
        update_data["email"] = update_data["email"].lower()
    result = supabase.table("users").update(update_data).eq("id", str(user_id)).execute()
    if not result.data:
        raise ValueError(f"User not found: {user_id}")
    return result.data[0]


def deactivate_user(user_id: str | UUID) -> dict[str, Any]:
    """Soft-delete a user."""
    return update_user(user_id, {"is_active": False})


def update_capacity(user_id: str | UUID, hours_per_week: float, max_concurrent_courses: int) -> dict[str, Any]:
    supabase = get_supabase()
    result = (
        supabase.table("user_capacity")
        .upsert(
            {
                "user_id": str(user_id),
                "hours_per_week": hours_per_week,
                "max_concurrent_courses": max_concurrent_courses,
            },
            on_conflict="user_id",
        )
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from capacity upsert")
    return result.data[0]


def get_capacity(user_id: str | UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("user_capacity").select("*").eq("user_id", str(user_id)).execute()
    return result.data[0] if result.data else None


def list_subtask_assignments(user_id: str | UUID) -> list[dict[str, Any]]:
    """Subtasks assigned to a user, joined with course title."""
    supabase = get_supabase()
    result = (
        supabase.table("subtask_assignments")
        .select("*, course_subtasks(id, title, status, course_id, start_date, finish_date, courses(id, title, due_date))")
        .eq("user_id", str(user_id))
        .execute()
    )
    assignments = []
    for row in result.data or []:
        subtask = row.get("course_subtasks") or {}
        course = subtask.get("courses") or {}
        assignments.append(
            {
                "id": row["id"],
                "subtask_id": subtask.get("id"),
                "subtask_title": subtask.get("title"),
                "phase_status": row.get("phase_status") or "not_started",
                "status": subtask.get("status"),
                "course_id": course.get("id"),
                "course_title": course.get("title"),
                "start_date": subtask.get("start_date"),
                "finish_date": subtask.get("finish_date"),
                "due_date": course.get("due_date"),
            }
        )
    return assignments
