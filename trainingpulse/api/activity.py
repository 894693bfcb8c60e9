"""Activity feed API: recent changes across the system or for one entity."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from trainingpulse.api.helpers import envelope, not_found, page
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.db import activity as activity_db
from trainingpulse.db import programs as programs_db

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("")
async def list_recent(
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    """Most recent activity, newest first."""
    result = activity_db.list_activity(entity_type=entity_type, action=action, limit=limit, offset=offset)
    return envelope(result["activities"], pagination=page(result["total"], limit, offset))


@router.get("/program/{program_id}")
async def list_for_program(
    program_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    """Activity on a program and its courses."""
    if not programs_db.get_program(program_id):
        raise not_found("Program")
    result = activity_db.list_program_activity(program_id, limit=limit, offset=offset)
    return envelope(result["activities"], pagination=page(result["total"], limit, offset))


@router.get("/{entity_type}/{entity_id}")
async def list_for_entity(
    entity_type: str,
    entity_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    result = activity_db.list_activity(entity_type=entity_type, entity_id=entity_id, limit=limit, offset=offset)
    return envelope(result["activities"], pagination=page(result["total"], limit, offset))
