"""Database operations for courses and course assignments."""

from datetime import date
from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


# ============================================================================
# Course CRUD
# ============================================================================


def list_courses(
    status: str | None = None,
    priority: str | None = None,
    program_id: UUID | None = None,
    team_id: UUID | None = None,
    owner_id: UUID | None = None,
    search: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> dict[str, Any]:
    """List courses with optional filters. Returns {"courses", "total"}."""
    supabase = get_supabase()
    query = supabase.table("courses").select("*", count="exact")
    if status:
        query = query.eq("status", status)
    if priority:
        query = query.eq("priority", priority)
    if program_id:
        query = query.eq("program_id", str(program_id))
    if team_id:
        query = query.eq("team_id", str(team_id))
    if owner_id:
        query = query.eq("owner_id", str(owner_id))
    if search:
        query = query.or_(f"title.ilike.%{search}%,code.ilike.%{search}%")
    result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
    return {"courses": result.data or [], "total": result.count or 0}


def list_courses_for_user(user_id: UUID, limit: int = 20, offset: int = 0) -> dict[str, Any]:
    """Courses a user owns or is assigned to."""
    supabase = get_supabase()
    assigned = (
        supabase.table("course_assignments")
        .select("course_id")
        .eq("user_id", str(user_id))
        .execute()
    )
    course_ids = {row["course_id"] for row in assigned.data or []}

    owned = supabase.table("courses").select("id").eq("owner_id", str(user_id)).execute()
    course_ids.update(row["id"] for row in owned.data or [])

    if not course_ids:
        return {"courses": [], "total": 0}

    result = (
        supabase.table("courses")
        .select("*", count="exact")
        .in_("id", sorted(course_ids))
        .order("due_date")
        .range(offset, offset + limit - 1)
        .execute()
    )
    return {"courses": result.data or [], "total": result.count or 0}


def get_course(course_id: UUID) -> Optional[dict[str, Any]]:
    """Get a course row by ID."""
    supabase = get_supabase()
    result = supabase.table("courses").select("*").eq("id", str(course_id)).execute()
    return result.data[0] if result.data else None


def get_course_details(course_id: UUID) -> Optional[dict[str, Any]]:
    """Get a course with its subtasks (ordered) and assignments."""
    course = get_course(course_id)
    if not course:
        return None

    from trainingpulse.db.subtasks import list_subtasks

    course["subtasks"] = list_subtasks(course_id)
    course["assignments"] = list_assignments(course_id)
    return course


def create_course(data: dict[str, Any], created_by: UUID | None = None) -> dict[str, Any]:
    """Insert a new course."""
    supabase = get_supabase()
    row = to_row({k: v for k, v in data.items() if v is not None and k != "workflow_template_id"})
    if created_by:
        row["created_by"] = str(created_by)
        row.setdefault("owner_id", str(created_by))
    result = supabase.table("courses").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from course insert")
    course = result.data[0]
    logger.info(f"Created course {course['id']}: {course.get('title')}")
    return course


def update_course(course_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    """Update course fields. Only keys present in ``data`` are written."""
    supabase = get_supabase()
    if not data:
        raise ValueError("No fields to update")
    update_data = to_row(data)
    update_data["updated_at"] = utcnow_iso()
    result = supabase.table("courses").update(update_data).eq("id", str(course_id)).execute()
    if not result.data:
        raise ValueError(f"Course not found: {course_id}")
    return result.data[0]


def delete_course(course_id: UUID) -> None:
    """Delete a course. Subtasks and assignments cascade via FK."""
    supabase = get_supabase()
    supabase.table("courses").delete().eq("id", str(course_id)).execute()


def set_course_status(course_id: UUID, status: str) -> dict[str, Any]:
    """Set the manual status; stamps completed_at when status is 'completed'."""
    data: dict[str, Any] = {"status": status}
    data["completed_at"] = utcnow_iso() if status == "completed" else None
    return update_course(course_id, data)


# ============================================================================
# Assignments
# ============================================================================


def list_assignments(course_id: UUID) -> list[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("course_assignments")
        .select("*, users(id, name, email, role)")
        .eq("course_id", str(course_id))
        .order("created_at")
        .execute()
    )
    return result.data or []


def add_assignment(
    course_id: UUID,
    user_id: UUID,
    role: str,
    due_date: date | None = None,
    assigned_by: UUID | None = None,
) -> dict[str, Any]:
    supabase = get_supabase()
    row: dict[str, Any] = {
        "course_id": str(course_id),
        "user_id": str(user_id),
        "role": role,
    }
    if due_date:
        row["due_date"] = due_date.isoformat()
    if assigned_by:
        row["assigned_by"] = str(assigned_by)
    result = (
        supabase.table("course_assignments")
        .upsert(row, on_conflict="course_id,user_id,role")
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from assignment upsert")
    return result.data[0]
