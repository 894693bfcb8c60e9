"""Role administration API."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import RoleCreate, RoleUpdate
from trainingpulse.db import roles as roles_db

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("")
async def list_roles(auth: AuthContext = Depends(require_auth)):
    return envelope(roles_db.list_roles())


@router.get("/{role_id}")
async def get_role(role_id: UUID, auth: AuthContext = Depends(require_auth)):
    role = roles_db.get_role(role_id)
    if not role:
        raise not_found("Role")
    return envelope(role)


@router.post("", status_code=201)
async def create_role(data: RoleCreate, auth: AuthContext = Depends(require_admin)):
    if roles_db.get_role_by_name(data.name):
        raise HTTPException(status_code=409, detail=f"Role '{data.name}' already exists")
    return envelope(roles_db.create_role(data.model_dump()))


@router.put("/{role_id}")
async def update_role(role_id: UUID, data: RoleUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(roles_db.update_role(role_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{role_id}")
async def delete_role(role_id: UUID, auth: AuthContext = Depends(require_admin)):
    try:
        roles_db.delete_role(role_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return envelope({"id": str(role_id), "deleted": True})
