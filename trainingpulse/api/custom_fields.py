"""Custom field definitions and per-entity values."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import (
    CustomFieldCreate,
    CustomFieldEntity,
    CustomFieldUpdate,
    CustomFieldValues,
)
from trainingpulse.db import custom_fields as custom_fields_db

router = APIRouter(prefix="/custom-fields", tags=["custom-fields"])


@router.get("")
async def list_fields(entity_type: Optional[CustomFieldEntity] = None, auth: AuthContext = Depends(require_auth)):
    return envelope(custom_fields_db.list_fields(entity_type.value if entity_type else None))


@router.get("/values/{entity_type}/{entity_id}")
async def get_values(entity_type: CustomFieldEntity, entity_id: UUID, auth: AuthContext = Depends(require_auth)):
    return envelope(custom_fields_db.get_values(entity_type.value, entity_id))


@router.put("/values/{entity_type}/{entity_id}")
async def set_values(
    entity_type: CustomFieldEntity,
    entity_id: UUID,
    data: CustomFieldValues,
    auth: AuthContext = Depends(require_auth),
):
    try:
        return envelope(custom_fields_db.set_values(entity_type.value, entity_id, data.values))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{field_id}")
async def get_field(field_id: UUID, auth: AuthContext = Depends(require_auth)):
    field = custom_fields_db.get_field(field_id)
    if not field:
        raise not_found("Custom field")
    return envelope(field)


@router.post("", status_code=201)
async def create_field(data: CustomFieldCreate, auth: AuthContext = Depends(require_admin)):
    if data.field_type.value in ("select", "multi_select") and not data.options:
        raise HTTPException(status_code=400, detail="Select fields need at least one option")
    return envelope(custom_fields_db.create_field(data.model_dump()))


@router.put("/{field_id}")
async def update_field(field_id: UUID, data: CustomFieldUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(custom_fields_db.update_field(field_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{field_id}")
async def delete_field(field_id: UUID, auth: AuthContext = Depends(require_admin)):
    custom_fields_db.delete_field(field_id)
    return envelope({"id": str(field_id), "deleted": True})
