"""Team API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, forbidden, not_found
from trainingpulse.core import permissions
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth, require_manager
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_teams import MemberAdd, TeamCreate, TeamUpdate
from trainingpulse.db import teams as teams_db

logger = get_logger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


def _require_team_manager(auth: AuthContext, team_id: UUID) -> dict:
    team = teams_db.get_team(team_id)
    if not team:
        raise not_found("Team")
    if not permissions.can_manage_team(auth.user, team):
        raise forbidden("You do not manage this team")
    return team


@router.get("")
async def list_teams(
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    auth: AuthContext = Depends(require_auth),
):
    return envelope(teams_db.list_teams(is_active=is_active, search=search))


@router.get("/{team_id}")
async def get_team(team_id: UUID, auth: AuthContext = Depends(require_auth)):
    team = teams_db.get_team(team_id)
    if not team:
        raise not_found("Team")
    return envelope(team)


@router.post("", status_code=201)
async def create_team(data: TeamCreate, auth: AuthContext = Depends(require_manager)):
    try:
        team = teams_db.create_team(data.model_dump(), created_by=auth.user_id)
    except Exception as e:
        logger.exception("Failed to create team")
        raise HTTPException(status_code=500, detail="Failed to create team") from e
    return envelope(team)


@router.put("/{team_id}")
async def update_team(team_id: UUID, data: TeamUpdate, auth: AuthContext = Depends(require_auth)):
    _require_team_manager(auth, team_id)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    return envelope(teams_db.update_team(team_id, updates))


@router.delete("/{team_id}")
async def delete_team(team_id: UUID, auth: AuthContext = Depends(require_admin)):
    if not teams_db.get_team(team_id):
        raise not_found("Team")
    teams_db.delete_team(team_id)
    return envelope({"id": str(team_id), "deleted": True})


@router.post("/{team_id}/members", status_code=201)
async def add_member(team_id: UUID, data: MemberAdd, auth: AuthContext = Depends(require_auth)):
    _require_team_manager(auth, team_id)
    return envelope(teams_db.add_member(team_id, data.user_id, data.role))


@router.delete("/{team_id}/members/{user_id}")
async def remove_member(team_id: UUID, user_id: UUID, auth: AuthContext = Depends(require_auth)):
    _require_team_manager(auth, team_id)
    teams_db.remove_member(team_id, user_id)
    return envelope({"team_id": str(team_id), "user_id": str(user_id), "removed": True})
