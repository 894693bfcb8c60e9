"""Database operations for comments on courses and other entities."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.comments import thread
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

AUTHOR = "author:users!created_by(id, name, email)"


def list_comments(entity_type: str, entity_id: str, limit: int = 20, offset: int = 0) -> dict[str, Any]:
    """
    Threaded comments on an entity, oldest first.

    Pagination counts top-level comments; every reply of a listed comment is
    included. Returns {"comments", "total"}.
    """
    supabase = get_supabase()
    roots = (
        supabase.table("comments")
        .select(f"*, {AUTHOR}", count="exact")
        .eq("entity_type", entity_type)
        .eq("entity_id", str(entity_id))
        .eq("is_deleted", False)
        .is_("parent_id", "null")
        .order("created_at")
        .range(offset, offset + limit - 1)
        .execute()
    )
    rows = roots.data or []
    reply_rows: list[dict[str, Any]] = []
    if rows:
        replies = (
            supabase.table("comments")
            .select(f"*, {AUTHOR}")
            .eq("entity_type", entity_type)
            .eq("entity_id", str(entity_id))
            .eq("is_deleted", False)
            .not_.is_("parent_id", "null")
            .order("created_at")
            .execute()
        )
        reply_rows = replies.data or []
    return {"comments": thread(rows, reply_rows), "total": roots.count or 0}


def get_comment(comment_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("comments")
        .select("*")
        .eq("id", str(comment_id))
        .eq("is_deleted", False)
        .execute()
    )
    return result.data[0] if result.data else None


def create_comment(data: dict[str, Any], created_by: UUID) -> dict[str, Any]:
    supabase = get_supabase()
    row = to_row({**data, "created_by": created_by})
    result = supabase.table("comments").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from comment insert")
    return result.data[0]


def update_comment(comment_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    """Rewrite a comment's content and mark it edited."""
    supabase = get_supabase()
    payload = {**to_row(data), "is_edited": True, "edited_at": utcnow_iso()}
    result = supabase.table("comments").update(payload).eq("id", str(comment_id)).execute()
    if not result.data:
        raise ValueError(f"Comment not found: {comment_id}")
    return result.data[0]


def delete_comment(comment_id: UUID) -> None:
    """Soft delete. Replies under a deleted comment are no longer listed."""
    supabase = get_supabase()
    supabase.table("comments").update({"is_deleted": True, "deleted_at": utcnow_iso()}).eq(
        "id", str(comment_id)
    ).execute()
