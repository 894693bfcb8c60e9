"""Delivery modality API: modality lookup values and the phases each one seeds on new courses."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import (
    ModalityCreate,
    ModalityTaskCreate,
    ModalityTaskReorder,
    ModalityTaskUpdate,
    ModalityUpdate,
)
from trainingpulse.db import modalities as modalities_db
from trainingpulse.db.modalities import ModalityInUse

router = APIRouter(prefix="/modalities", tags=["modalities"])


# ============================================================================
# Modality tasks (registered before /{modality_id})
# ============================================================================


@router.get("/tasks")
async def list_all_tasks(auth: AuthContext = Depends(require_auth)):
    """Task templates grouped by modality value."""
    return envelope(modalities_db.list_tasks_grouped())


@router.get("/tasks/{modality}")
async def list_tasks(modality: str, auth: AuthContext = Depends(require_auth)):
    return envelope(modalities_db.list_tasks(modality))


@router.post("/tasks", status_code=201)
async def create_task(data: ModalityTaskCreate, auth: AuthContext = Depends(require_admin)):
    if not modalities_db.get_modality_by_value(data.modality):
        raise not_found("Modality")
    return envelope(modalities_db.create_task(data.model_dump()))


@router.post("/tasks/reorder")
async def reorder_tasks(data: ModalityTaskReorder, auth: AuthContext = Depends(require_admin)):
    return envelope(modalities_db.reorder_tasks(data.modality, data.task_ids))


@router.put("/tasks/{task_id}")
async def update_task(task_id: UUID, data: ModalityTaskUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(modalities_db.update_task(task_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: UUID, auth: AuthContext = Depends(require_admin)):
    try:
        modalities_db.delete_task(task_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope({"id": str(task_id), "deleted": True})


# ============================================================================
# Modalities
# ============================================================================


@router.get("")
async def list_modalities(include_inactive: bool = False, auth: AuthContext = Depends(require_auth)):
    return envelope(modalities_db.list_modalities(include_inactive=include_inactive))


@router.get("/{modality_id}")
async def get_modality(modality_id: UUID, auth: AuthContext = Depends(require_auth)):
    modality = modalities_db.get_modality(modality_id)
    if not modality:
        raise not_found("Modality")
    return envelope(modality)


@router.post("", status_code=201)
async def create_modality(data: ModalityCreate, auth: AuthContext = Depends(require_admin)):
    if modalities_db.get_modality_by_value(data.value):
        raise HTTPException(status_code=409, detail=f"Modality '{data.value}' already exists")
    return envelope(modalities_db.create_modality(data.model_dump()))


@router.put("/{modality_id}")
async def update_modality(modality_id: UUID, data: ModalityUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(modalities_db.update_modality(modality_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{modality_id}")
async def delete_modality(modality_id: UUID, auth: AuthContext = Depends(require_admin)):
    """Delete a modality no course uses, together with its task templates."""
    try:
        modalities_db.delete_modality(modality_id)
    except ModalityInUse as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope({"id": str(modality_id), "deleted": True})
