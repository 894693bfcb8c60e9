"""Database operations for bulk course updates.

A bulk update runs in two steps: ``preview`` stores the matched courses and the
requested updates as a pending operation, ``execute`` applies that operation.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger, log_with_context
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)

MAX_BULK_COURSES = 100


def match_courses(filters: dict[str, Any]) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("courses").select("id, title, status, priority, due_date, owner_id")
    if filters.get("course_ids"):
        query = query.in_("id", [str(c) for c in filters["course_ids"]])
    if filters.get("status"):
        query = query.eq("status", filters["status"])
    if filters.get("priority"):
        query = query.eq("priority", filters["priority"])
    if filters.get("program_id"):
        query = query.eq("program_id", str(filters["program_id"]))
    return query.order("title").limit(MAX_BULK_COURSES).execute().data or []


def _changes_for(course: dict[str, Any], updates: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {
        field: {"from": course.get(field), "to": value}
        for field, value in updates.items()
        if course.get(field) != value
    }


def preview(
    filters: dict[str, Any],
    updates: dict[str, Any],
    options: dict[str, Any],
    user_id: UUID | str,
) -> dict[str, Any]:
    """Match courses, compute per-course changes and store a pending operation."""
    updates = to_row({k: v for k, v in updates.items() if v is not None})
    if not updates:
        raise ValueError("No updates specified")
    courses = match_courses(filters)
    items = []
    for course in courses:
        changes = _changes_for(course, updates)
        items.append({"course_id": course["id"], "title": course.get("title"), "changes": changes})
    affected = [item for item in items if item["changes"]]

    supabase = get_supabase()
    result = (
        supabase.table("bulk_operations")
        .insert(
            {
                "user_id": str(user_id),
                "status": "preview",
                "filter": to_row(filters),
                "updates": updates,
                "options": options,
                "course_ids": [item["course_id"] for item in affected],
                "total_courses": len(items),
            }
        )
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from bulk operation insert")
    operation = result.data[0]
    logger.info(f"Bulk preview {operation['id']}: {len(affected)}/{len(items)} courses affected")
    return {
        "previewId": operation["id"],
        "totalCourses": len(items),
        "validCourses": len(affected),
        "updates": updates,
        "courses": items,
    }


def get_operation(operation_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("bulk_operations").select("*").eq("id", str(operation_id)).execute()
    return result.data[0] if result.data else None


def _claim(operation_id: UUID, user_id: UUID | str) -> dict[str, Any]:
    """
    Move a pending operation to ``running`` in one conditional update.

    At most one caller wins the claim.

    Raises:
        ValueError: operation missing, owned by another user, or no longer pending
    """
    supabase = get_supabase()
    claimed = (
        supabase.table("bulk_operations")
        .update({"status": "running", "started_at": utcnow_iso()})
        .eq("id", str(operation_id))
        .eq("status", "preview")
        .eq("user_id", str(user_id))
        .execute()
    )
    if claimed.data:
        return claimed.data[0]

    operation = get_operation(operation_id)
    if not operation:
        raise ValueError(f"Bulk operation not found: {operation_id}")
    if str(operation.get("user_id")) != str(user_id):
        raise ValueError("Bulk operation belongs to another user")
    raise ValueError(f"Bulk operation {operation_id} was already {operation.get('status')}")


def execute(operation_id: UUID, user_id: UUID | str) -> dict[str, Any]:
    """Claim and apply a previewed operation. Each course update is attempted independently."""
    operation = _claim(operation_id, user_id)

    supabase = get_supabase()
    successful, errors = 0, []
    status = "failed"
    try:
        updates = {**operation["updates"], "updated_at": utcnow_iso()}
        for course_id in operation.get("course_ids") or []:
            try:
                supabase.table("courses").update(updates).eq("id", course_id).execute()
                successful += 1
            except Exception as e:
                log_with_context(
                    logger,
                    logging.ERROR,
                    "Bulk course update failed",
                    operation_id=operation_id,
                    course_id=course_id,
                    error=str(e),
                )
                errors.append({"course_id": course_id, "error": str(e)})
        status = "completed" if not errors else "completed_with_errors"
    finally:
        supabase.table("bulk_operations").update(
            {
                "status": status,
                "successful": successful,
                "failed": len(errors),
                "executed_at": utcnow_iso(),
            }
        ).eq("id", str(operation_id)).execute()

    return {"operationId": str(operation_id), "successful": successful, "failed": len(errors), "errors": errors}


def history(user_id: UUID | str | None = None, limit: int = 20, offset: int = 0) -> dict[str, Any]:
    supabase = get_supabase()
    query = supabase.table("bulk_operations").select("*", count="exact")
    if user_id:
        query = query.eq("user_id", str(user_id))
    result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
    return {"operations": result.data or [], "total": result.count or 0}
