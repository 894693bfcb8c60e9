"""Database operations for course dependencies."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.dependencies import DEFAULT_MAX_DEPTH, check_new_dependency, walk
from trainingpulse.core.logging import get_logger
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "course_dependencies"


def _upstream_edges(course_ids: list[str]) -> list[tuple[str, str, str]]:
    supabase = get_supabase()
    result = supabase.table(TABLE).select("*").in_("course_id", course_ids).execute()
    return [(r["course_id"], r["depends_on_course_id"], r.get("dependency_type") or "blocks") for r in result.data or []]


def _downstream_edges(course_ids: list[str]) -> list[tuple[str, str, str]]:
    supabase = get_supabase()
    result = supabase.table(TABLE).select("*").in_("depends_on_course_id", course_ids).execute()
    return [(r["depends_on_course_id"], r["course_id"], r.get("dependency_type") or "blocks") for r in result.data or []]


def _attach_courses(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if not entries:
        return entries
    supabase = get_supabase()
    result = (
        supabase.table("courses")
        .select("id, title, status, due_date")
        .in_("id", [e["course_id"] for e in entries])
        .execute()
    )
    by_id = {c["id"]: c for c in result.data or []}
    return [{**e, "course": by_id.get(e["course_id"])} for e in entries]


def list_dependencies(course_id: UUID) -> list[dict[str, Any]]:
    """Direct dependency rows of a course with the course each one waits on."""
    supabase = get_supabase()
    result = (
        supabase.table(TABLE)
        .select("*, depends_on:courses!depends_on_course_id(id, title, status, due_date)")
        .eq("course_id", str(course_id))
        .order("created_at")
        .execute()
    )
    return result.data or []


def get_dependency(course_id: UUID, dependency_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table(TABLE)
        .select("*")
        .eq("id", str(dependency_id))
        .eq("course_id", str(course_id))
        .execute()
    )
    return result.data[0] if result.data else None


def get_dependency_graph(course_id: UUID, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, Any]:
    """Courses this one waits on (upstream) and courses waiting on it (downstream)."""
    start = str(course_id)
    return {
        "course_id": start,
        "upstream": _attach_courses(walk(start, _upstream_edges, max_depth=max_depth)),
        "downstream": _attach_courses(walk(start, _downstream_edges, max_depth=max_depth)),
    }


def create_dependency(course_id: UUID, depends_on_id: UUID, dependency_type: str = "blocks") -> dict[str, Any]:
    """
    Add an edge ``course_id -> depends_on_id``.

    Raises:
        DependencyError: self-dependency or cycle
        ValueError: the edge already exists or the insert returned nothing
    """
    check_new_dependency(str(course_id), str(depends_on_id), _upstream_edges)

    supabase = get_supabase()
    existing = (
        supabase.table(TABLE)
        .select("id")
        .eq("course_id", str(course_id))
        .eq("depends_on_course_id", str(depends_on_id))
        .execute()
    )
    if existing.data:
        raise ValueError("Dependency already exists")

    result = (
        supabase.table(TABLE)
        .insert(
            {
                "course_id": str(course_id),
                "depends_on_course_id": str(depends_on_id),
                "dependency_type": dependency_type,
            }
        )
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from dependency insert")
    logger.info(f"Course {course_id} now depends on {depends_on_id} ({dependency_type})")
    return result.data[0]


def delete_dependency(course_id: UUID, dependency_id: UUID) -> None:
    supabase = get_supabase()
    result = (
        supabase.table(TABLE)
        .delete()
        .eq("id", str(dependency_id))
        .eq("course_id", str(course_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Dependency not found: {dependency_id}")
