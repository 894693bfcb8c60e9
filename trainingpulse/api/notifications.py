"""Notification API: in-app notification management and preferences."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from trainingpulse.api.helpers import envelope, not_found, page
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_notifications import (
    CleanupRequest,
    NotificationPreferences,
    NotificationTestRequest,
    UnreadCountResponse,
)
from trainingpulse.db import notifications as notifications_db

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    type: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    """List notifications for the current user."""
    result = notifications_db.list_notifications(
        auth.user_id, unread_only=unread_only, notification_type=type, limit=limit, offset=offset
    )
    return envelope(
        result["notifications"],
        pagination=page(result["total"], limit, offset),
        unread_count=notifications_db.unread_count(auth.user_id),
    )


@router.get("/digest")
async def get_digest(
    days: int = Query(7, ge=1, le=90),
    limit: int = Query(10, ge=1, le=50),
    auth: AuthContext = Depends(require_auth),
):
    return envelope(notifications_db.get_digest(auth.user_id, days=days, limit=limit))


@router.get("/stats")
async def get_stats(auth: AuthContext = Depends(require_auth)):
    return envelope(notifications_db.get_stats(auth.user_id))


@router.get("/unread-count")
async def get_unread_count(auth: AuthContext = Depends(require_auth)):
    return envelope(UnreadCountResponse(count=notifications_db.unread_count(auth.user_id)).model_dump())


@router.get("/preferences")
async def get_preferences(auth: AuthContext = Depends(require_auth)):
    return envelope(notifications_db.get_preferences(auth.user_id))


@router.put("/preferences")
async def update_preferences(data: NotificationPreferences, auth: AuthContext = Depends(require_auth)):
    return envelope(notifications_db.update_preferences(auth.user_id, data.model_dump()))


@router.put("/read-all")
async def mark_all_read(auth: AuthContext = Depends(require_auth)):
    """Mark all notifications as read."""
    updated = notifications_db.mark_all_read(auth.user_id)
    return envelope({"updated": updated})


@router.post("/test", status_code=201)
async def send_test(data: NotificationTestRequest, auth: AuthContext = Depends(require_auth)):
    """Create a notification for the current user to check delivery."""
    notification = notifications_db.create_notification(
        auth.user_id,
        data.type,
        data.title,
        message=data.message or "This is a test notification.",
    )
    return envelope(notification)


@router.post("/cleanup")
async def cleanup(data: CleanupRequest, auth: AuthContext = Depends(require_admin)):
    """Delete read notifications older than ``daysToKeep`` days."""
    removed = notifications_db.cleanup(days_to_keep=data.days_to_keep)
    return envelope({"removed": removed, "daysToKeep": data.days_to_keep})


@router.put("/{notification_id}/read")
async def mark_read(notification_id: UUID, auth: AuthContext = Depends(require_auth)):
    """Mark a single notification as read."""
    try:
        return envelope(notifications_db.mark_read(auth.user_id, notification_id))
    except ValueError as e:
        raise not_found("Notification") from e


@router.delete("/{notification_id}")
async def delete_notification(notification_id: UUID, auth: AuthContext = Depends(require_auth)):
    try:
        notifications_db.delete_notification(auth.user_id, notification_id)
    except ValueError as e:
        raise not_found("Notification") from e
    return envelope({"id": str(notification_id), "deleted": True})
