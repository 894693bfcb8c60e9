"""Course priority lookup API."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import PriorityCreate, PriorityUpdate
from trainingpulse.db import priorities as priorities_db
from trainingpulse.db.priorities import PriorityInUse

router = APIRouter(prefix="/priorities", tags=["priorities"])


@router.get("")
async def list_priorities(include_inactive: bool = False, auth: AuthContext = Depends(require_auth)):
    return envelope(priorities_db.list_priorities(include_inactive=include_inactive))


@router.get("/{priority_id}")
async def get_priority(priority_id: UUID, auth: AuthContext = Depends(require_auth)):
    priority = priorities_db.get_priority(priority_id)
    if not priority:
        raise not_found("Priority")
    return envelope(priority)


@router.post("", status_code=201)
async def create_priority(data: PriorityCreate, auth: AuthContext = Depends(require_admin)):
    if priorities_db.get_priority_by_value(data.value):
        raise HTTPException(status_code=409, detail=f"Priority '{data.value.lower()}' already exists")
    return envelope(priorities_db.create_priority(data.model_dump()))


@router.put("/{priority_id}")
async def update_priority(priority_id: UUID, data: PriorityUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(priorities_db.update_priority(priority_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{priority_id}")
async def delete_priority(priority_id: UUID, auth: AuthContext = Depends(require_admin)):
    """Deactivate a priority no course uses."""
    try:
        priorities_db.delete_priority(priority_id)
    except PriorityInUse as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope({"id": str(priority_id), "deleted": True})
