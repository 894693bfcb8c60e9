"""Phase status lookup API, including ordering and the default status."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import PhaseStatusCreate, PhaseStatusUpdate, ReorderRequest
from trainingpulse.db import phase_statuses as phase_statuses_db

router = APIRouter(prefix="/phase-statuses", tags=["phase-statuses"])


@router.get("")
async def list_phase_statuses(include_inactive: bool = False, auth: AuthContext = Depends(require_auth)):
    return envelope(phase_statuses_db.list_phase_statuses(include_inactive=include_inactive))


@router.post("/reorder")
async def reorder(data: ReorderRequest, auth: AuthContext = Depends(require_admin)):
    return envelope(phase_statuses_db.reorder_phase_statuses(data.status_ids))


@router.get("/{status_id}")
async def get_phase_status(status_id: UUID, auth: AuthContext = Depends(require_auth)):
    status = phase_statuses_db.get_phase_status(status_id)
    if not status:
        raise not_found("Phase status")
    return envelope(status)


@router.post("", status_code=201)
async def create_phase_status(data: PhaseStatusCreate, auth: AuthContext = Depends(require_admin)):
    return envelope(phase_statuses_db.create_phase_status(data.model_dump()))


@router.put("/{status_id}")
async def update_phase_status(status_id: UUID, data: PhaseStatusUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(phase_statuses_db.update_phase_status(status_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{status_id}")
async def delete_phase_status(status_id: UUID, auth: AuthContext = Depends(require_admin)):
    try:
        phase_statuses_db.delete_phase_status(status_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return envelope({"id": str(status_id), "deleted": True})
