"""Course status lookup API."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import StatusCreate, StatusUpdate
from trainingpulse.db import statuses as statuses_db

router = APIRouter(prefix="/statuses", tags=["statuses"])


@router.get("")
async def list_statuses(include_inactive: bool = False, auth: AuthContext = Depends(require_auth)):
    return envelope(statuses_db.list_statuses(include_inactive=include_inactive))


@router.get("/{status_id}")
async def get_status(status_id: UUID, auth: AuthContext = Depends(require_auth)):
    status = statuses_db.get_status(status_id)
    if not status:
        raise not_found("Status")
    return envelope(status)


@router.post("", status_code=201)
async def create_status(data: StatusCreate, auth: AuthContext = Depends(require_admin)):
    return envelope(statuses_db.create_status(data.model_dump()))


@router.put("/{status_id}")
async def update_status(status_id: UUID, data: StatusUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(statuses_db.update_status(status_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{status_id}")
async def delete_status(status_id: UUID, auth: AuthContext = Depends(require_admin)):
    try:
        statuses_db.delete_status(status_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return envelope({"id": str(status_id), "deleted": True})
