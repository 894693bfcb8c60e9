"""Program API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_auth, require_manager
from trainingpulse.core.schemas_teams import MemberAdd, ProgramCreate, ProgramUpdate
from trainingpulse.db import programs as programs_db

router = APIRouter(prefix="/programs", tags=["programs"])


def _load(program_id: UUID) -> dict:
    program = programs_db.get_program(program_id)
    if not program:
        raise not_found("Program")
    return program


@router.get("")
async def list_programs(is_active: Optional[bool] = None, auth: AuthContext = Depends(require_auth)):
    return envelope(programs_db.list_programs(is_active=is_active))


@router.get("/{program_id}")
async def get_program(program_id: UUID, auth: AuthContext = Depends(require_auth)):
    return envelope(_load(program_id))


@router.post("", status_code=201)
async def create_program(data: ProgramCreate, auth: AuthContext = Depends(require_manager)):
    return envelope(programs_db.create_program(data.model_dump(), created_by=auth.user_id))


@router.put("/{program_id}")
async def update_program(program_id: UUID, data: ProgramUpdate, auth: AuthContext = Depends(require_manager)):
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return envelope(programs_db.update_program(program_id, updates))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/{program_id}")
async def delete_program(program_id: UUID, auth: AuthContext = Depends(require_manager)):
    _load(program_id)
    programs_db.delete_program(program_id)
    return envelope({"id": str(program_id), "deleted": True})


@router.post("/{program_id}/members", status_code=201)
async def add_member(program_id: UUID, data: MemberAdd, auth: AuthContext = Depends(require_manager)):
    _load(program_id)
    return envelope(programs_db.add_member(program_id, data.user_id, data.role))


@router.delete("/{program_id}/members/{user_id}")
async def remove_member(program_id: UUID, user_id: UUID, auth: AuthContext = Depends(require_manager)):
    programs_db.remove_member(program_id, user_id)
    return envelope({"program_id": str(program_id), "user_id": str(user_id), "removed": True})
