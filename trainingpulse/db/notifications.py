"""Database operations for in-app notifications and notification preferences."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)

DEFAULT_PREFERENCES = {
    "email_enabled": True,
    "in_app_enabled": True,
    "digest_frequency": "daily",
    "muted_types": [],
}


def list_notifications(
    user_id: UUID,
    unread_only: bool = False,
    notification_type: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """List a user's notifications, newest first. Returns {"notifications", "total"}."""
    supabase = get_supabase()
    query = supabase.table("notifications").select("*", count="exact").eq("user_id", str(user_id))
    if unread_only:
        query = query.is_("read_at", "null")
    if notification_type:
        query = query.eq("type", notification_type)
    result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
    return {"notifications": result.data or [], "total": result.count or 0}


def unread_count(user_id: UUID) -> int:
    supabase = get_supabase()
    result = (
        supabase.table("notifications")
        .select("id", count="exact")
        .eq("user_id", str(user_id))
        .is_("read_at", "null")
        .execute()
    )
    return result.count or 0


def get_digest(user_id: UUID, days: int = 7, limit: int = 10) -> dict[str, Any]:
    """Recent notifications for the dashboard digest."""
    supabase = get_supabase()
    since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
    result = (
        supabase.table("notifications")
        .select("*")
        .eq("user_id", str(user_id))
        .gte("created_at", since)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    notifications = result.data or []
    return {
        "notifications": notifications,
        "unread_count": unread_count(user_id),
        "since": since,
    }


def get_stats(user_id: UUID) -> dict[str, Any]:
    """Counts by type and priority plus read/unread totals."""
    supabase = get_supabase()
    result = (
        supabase.table("notifications")
        .select("type, priority, read_at")
        .eq("user_id", str(user_id))
        .execute()
    )
    rows = result.data or []
    by_type: dict[str, int] = {}
    by_priority: dict[str, int] = {}
    unread = 0
    for row in rows:
        by_type[row.get("type") or "other"] = by_type.get(row.get("type") or "other", 0) + 1
        priority = row.get("priority") or "normal"
        by_priority[priority] = by_priority.get(priority, 0) + 1
        if not row.get("read_at"):
            unread += 1
    return {
        "total": len(rows),
        "unread": unread,
        "read": len(rows) - unread,
        "by_type": by_type,
        "by_priority": by_priority,
    }


def create_notification(
    user_id: UUID,
    notification_type: str,
    title: str,
    message: str | None = None,
    priority: str = "normal",
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict | None = None,
) -> dict[str, Any]:
    supabase = get_supabase()
    row = {
        "user_id": str(user_id),
        "type": notification_type,
        "title": title,
        "message": message,
        "priority": priority,
        "entity_type": entity_type,
        "entity_id": str(entity_id) if entity_id else None,
        "metadata": metadata or {},
    }
    result = supabase.table("notifications").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from notification insert")
    return result.data[0]


def mark_read(user_id: UUID, notification_id: UUID) -> dict[str, Any]:
    supabase = get_supabase()
    result = (
        supabase.table("notifications")
        .update({"read_at": utcnow_iso()})
        .eq("id", str(notification_id))
        .eq("user_id", str(user_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Notification not found: {notification_id}")
    return result.data[0]


def mark_all_read(user_id: UUID) -> int:
    """Mark every unread notification read. Returns the number updated."""
    supabase = get_supabase()
    result = (
        supabase.table("notifications")
        .update({"read_at": utcnow_iso()})
        .eq("user_id", str(user_id))
        .is_("read_at", "null")
        .execute()
    )
    return len(result.data or [])


def delete_notification(user_id: UUID, notification_id: UUID) -> None:
    supabase = get_supabase()
    result = (
        supabase.table("notifications")
        .delete()
        .eq("id", str(notification_id))
        .eq("user_id", str(user_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Notification not found: {notification_id}")


def get_preferences(user_id: UUID) -> dict[str, Any]:
    supabase = get_supabase()
    result = (
        supabase.table("notification_preferences")
        .select("*")
        .eq("user_id", str(user_id))
        .execute()
    )
    if not result.data:
        return {"user_id": str(user_id), **DEFAULT_PREFERENCES}
    return result.data[0]


def update_preferences(user_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    row = to_row({**data, "user_id": user_id, "updated_at": utcnow_iso()})
    result = (
        supabase.table("notification_preferences")
        .upsert(row, on_conflict="user_id")
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from preferences upsert")
    return result.data[0]


def cleanup(days_to_keep: int = 30, user_id: Optional[UUID] = None) -> int:
    """Delete read notifications older than ``days_to_keep``. Returns the count removed."""
    supabase = get_supabase()
    cutoff = (datetime.now(timezone.utc) - timedelta(days=days_to_keep)).isoformat()
    query = (
        supabase.table("notifications")
        .delete()
        .lt("created_at", cutoff)
        .not_.is_("read_at", "null")
    )
    if user_id:
        query = query.eq("user_id", str(user_id))
    result = query.execute()
    removed = len(result.data or [])
    logger.info(f"Cleaned up {removed} notifications older than {days_to_keep} days")
    return removed
