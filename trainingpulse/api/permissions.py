"""Permission administration API and the current user's effective permissions."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import PermissionCreate, PermissionUpdate
from trainingpulse.db import permissions as permissions_db

router = APIRouter(prefix="/permissions", tags=["permissions"])

user_permissions_router = APIRouter(prefix="/user-permissions", tags=["permissions"])


@router.get("")
async def list_permissions(category: Optional[str] = None, auth: AuthContext = Depends(require_auth)):
    return envelope(permissions_db.list_permissions(category=category))


@router.get("/grouped")
async def list_grouped(auth: AuthContext = Depends(require_auth)):
    return envelope(permissions_db.list_grouped())


@router.get("/categories")
async def list_categories(auth: AuthContext = Depends(require_auth)):
    return envelope(permissions_db.list_categories())


@router.get("/{permission_id}")
async def get_permission(permission_id: UUID, auth: AuthContext = Depends(require_auth)):
    permission = permissions_db.get_permission(permission_id)
    if not permission:
        raise not_found("Permission")
    return envelope(permission)


@router.post("", status_code=201)
async def create_permission(data: PermissionCreate, auth: AuthContext = Depends(require_admin)):
    return envelope(permissions_db.create_permission(data.model_dump()))


@router.put("/{permission_id}")
async def update_permission(permission_id: UUID, data: PermissionUpdate, auth: AuthContext = Depends(require_admin)):
    try:
        return envelope(permissions_db.update_permission(permission_id, data.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/{permission_id}")
async def delete_permission(permission_id: UUID, auth: AuthContext = Depends(require_admin)):
    permissions_db.delete_permission(permission_id)
    return envelope({"id": str(permission_id), "deleted": True})


@user_permissions_router.get("")
async def get_current_permissions(auth: AuthContext = Depends(require_auth)):
    """Permission names granted to the current user's role."""
    return envelope({"role": auth.role, "permissions": permissions_db.permissions_for_role(auth.role)})


@user_permissions_router.get("/role")
async def get_current_role(auth: AuthContext = Depends(require_auth)):
    return envelope({"role": auth.role, "is_admin": auth.is_admin, "can_manage": auth.can_manage})
