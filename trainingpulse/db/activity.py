"""Database operations for the activity feed."""

from typing import Any
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


def record_activity(
    entity_type: str,
    entity_id: str | UUID,
    action: str,
    actor_id: UUID | str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Append an activity entry. Failures are logged and do not fail the caller."""
    supabase = get_supabase()
    try:
        supabase.table("activities").insert(
            to_row(
                {
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "action": action,
                    "user_id": str(actor_id) if actor_id else None,
                    "details": details or {},
                }
            )
        ).execute()
    except Exception as e:
        logger.warning(f"Failed to record activity {action} on {entity_type}/{entity_id}: {e}")


def list_activity(
    entity_type: str | None = None,
    entity_id: UUID | str | None = None,
    action: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """Activity entries newest first, optionally for one entity. Returns {"activities", "total"}."""
    supabase = get_supabase()
    query = supabase.table("activities").select("*, users(id, name)", count="exact")
    if entity_type:
        query = query.eq("entity_type", entity_type)
    if entity_id:
        query = query.eq("entity_id", str(entity_id))
    if action:
        query = query.eq("action", action)
    result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
    return {"activities": result.data or [], "total": result.count or 0}


def list_program_activity(program_id: UUID, limit: int = 50, offset: int = 0) -> dict[str, Any]:
    """Activity on the program itself and on every course in it."""
    supabase = get_supabase()
    courses = supabase.table("courses").select("id").eq("program_id", str(program_id)).execute()
    course_ids = [c["id"] for c in courses.data or []]
    clauses = [f"and(entity_type.eq.program,entity_id.eq.{program_id})"]
    if course_ids:
        clauses.append(f"and(entity_type.eq.course,entity_id.in.({','.join(course_ids)}))")
    result = (
        supabase.table("activities")
        .select("*, users(id, name)", count="exact")
        .or_(",".join(clauses))
        .order("created_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )
    return {"activities": result.data or [], "total": result.count or 0}
