"""Comment API: threaded discussion on courses and other entities."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from trainingpulse.api.helpers import envelope, forbidden, not_found, page
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.core.comments import excerpt
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_comments import CommentCreate, CommentReply, CommentUpdate
from trainingpulse.db import activity as activity_db
from trainingpulse.db import comments as comments_db
from trainingpulse.db import notifications as notifications_db

logger = get_logger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


def _load_own_comment(comment_id: UUID, auth: AuthContext, verb: str) -> dict:
    comment = comments_db.get_comment(comment_id)
    if not comment:
        raise not_found("Comment")
    if str(comment.get("created_by")) != str(auth.user_id):
        raise forbidden(f"You can only {verb} your own comments")
    return comment


def _notify_mentions(comment: dict[str, Any], mentions: list[UUID], auth: AuthContext) -> None:
    """Notify mentioned users other than the author. Failures are logged only."""
    author = auth.user.get("name") or auth.user.get("email") or "Someone"
    for user_id in sorted({str(m) for m in mentions} - {str(auth.user_id)}):
        try:
            notifications_db.create_notification(
                user_id,
                "mention",
                f"{author} mentioned you in a comment",
                message=excerpt(comment["content"]),
                entity_type=comment["entity_type"],
                entity_id=comment["entity_id"],
                metadata={"comment_id": comment["id"]},
            )
        except Exception as e:
            logger.warning(f"Failed to notify {user_id} of mention in comment {comment['id']}: {e}")


def _create(data: dict[str, Any], auth: AuthContext, action: str) -> dict:
    try:
        comment = comments_db.create_comment(data, created_by=auth.user_id)
    except Exception as e:
        logger.exception(f"Failed to create comment on {data['entity_type']}/{data['entity_id']}")
        raise HTTPException(status_code=500, detail="Failed to create comment") from e

    details = {"comment_id": comment["id"], "content": excerpt(data["content"])}
    if data.get("parent_id"):
        details["parent_comment_id"] = str(data["parent_id"])
    activity_db.record_activity(data["entity_type"], data["entity_id"], action, auth.user_id, details)
    _notify_mentions(comment, data.get("mentions") or [], auth)
    return comment


@router.get("/{entity_type}/{entity_id}")
async def list_comments(
    entity_type: str,
    entity_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    """Threaded comments; pagination counts top-level comments."""
    result = comments_db.list_comments(entity_type, entity_id, limit=limit, offset=offset)
    return envelope(result["comments"], pagination=page(result["total"], limit, offset))


@router.post("", status_code=201)
async def create_comment(data: CommentCreate, auth: AuthContext = Depends(require_auth)):
    payload = data.model_dump()
    if data.parent_id:
        parent = comments_db.get_comment(data.parent_id)
        if not parent:
            raise not_found("Parent comment")
        if (parent["entity_type"], str(parent["entity_id"])) != (data.entity_type, data.entity_id):
            raise HTTPException(status_code=400, detail="Reply must be on the same entity as its parent")
    action = "replied" if data.parent_id else "commented"
    return envelope(_create(payload, auth, action))


@router.post("/{parent_id}/reply", status_code=201)
async def reply(parent_id: UUID, data: CommentReply, auth: AuthContext = Depends(require_auth)):
    """Reply to a comment; the reply is attached to the parent's entity."""
    parent = comments_db.get_comment(parent_id)
    if not parent:
        raise not_found("Parent comment")
    payload = {
        **data.model_dump(),
        "entity_type": parent["entity_type"],
        "entity_id": parent["entity_id"],
        "parent_id": parent_id,
    }
    return envelope(_create(payload, auth, "replied"))


@router.put("/{comment_id}")
async def update_comment(comment_id: UUID, data: CommentUpdate, auth: AuthContext = Depends(require_auth)):
    _load_own_comment(comment_id, auth, "edit")
    try:
        return envelope(comments_db.update_comment(comment_id, data.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/{comment_id}")
async def delete_comment(comment_id: UUID, auth: AuthContext = Depends(require_auth)):
    _load_own_comment(comment_id, auth, "delete")
    comments_db.delete_comment(comment_id)
    return envelope({"id": str(comment_id), "deleted": True})
