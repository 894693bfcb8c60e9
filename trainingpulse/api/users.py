"""User API endpoints: profiles, capacity, course and subtask assignments."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from trainingpulse.api.helpers import envelope, forbidden, not_found, page
from trainingpulse.core.analytics import compute_workload
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth, require_manager
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_auth import CapacityUpdate, UserCreate, UserUpdate
from trainingpulse.db import analytics as analytics_db
from trainingpulse.db import courses as courses_db
from trainingpulse.db import users as users_db
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

# Fields a user may change on their own profile
SELF_EDITABLE = {"name", "title", "phone", "avatar_url"}


def _require_self_or_manager(auth: AuthContext, user_id: UUID) -> None:
    if auth.user_id != user_id and not auth.can_manage:
        raise forbidden("You can only access your own data")


@router.get("")
async def list_users(
    role: Optional[str] = None,
    team_id: Optional[UUID] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    result = users_db.list_users(
        role=role, team_id=team_id, is_active=is_active, search=search, limit=limit, offset=offset
    )
    return envelope(result["users"], pagination=page(result["total"], limit, offset))


@router.get("/current")
async def get_current(auth: AuthContext = Depends(require_auth)):
    """The authenticated user's profile."""
    return envelope(auth.user)


@router.put("/current")
async def update_current(data: UserUpdate, auth: AuthContext = Depends(require_auth)):
    updates = data.model_dump(exclude_unset=True)
    disallowed = set(updates) - SELF_EDITABLE
    if disallowed:
        raise forbidden(f"Cannot change: {', '.join(sorted(disallowed))}")
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    return envelope(users_db.update_user(auth.user_id, updates))


@router.get("/{user_id}")
async def get_user(user_id: UUID, auth: AuthContext = Depends(require_auth)):
    user = users_db.get_user(user_id)
    if not user:
        raise not_found("User")
    user["capacity"] = users_db.get_capacity(user_id)
    return envelope(user)


@router.post("", status_code=201)
async def create_user(data: UserCreate, auth: AuthContext = Depends(require_admin)):
    """Create an auth account and users row (admin only)."""
    if users_db.get_user_by_email(data.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    try:
        attributes = {"email": data.email, "email_confirm": True}
        if data.password:
            attributes["password"] = data.password
        response = get_supabase().auth.admin.create_user(attributes)
        user = users_db.create_user(
            response.user.id,
            data.model_dump(exclude={"password"}, exclude_none=True),
        )
    except Exception as e:
        logger.exception(f"Failed to create user {data.email}")
        raise HTTPException(status_code=500, detail="Failed to create user") from e
    return envelope(user)


@router.put("/{user_id}")
async def update_user(user_id: UUID, data: UserUpdate, auth: AuthContext = Depends(require_auth)):
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    if auth.user_id == user_id:
        if set(updates) - SELF_EDITABLE:
            raise forbidden("Role, team and status changes require an administrator")
    elif not auth.is_admin:
        raise forbidden("Only administrators can edit other users")
    try:
        return envelope(users_db.update_user(user_id, updates))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/{user_id}")
async def deactivate_user(user_id: UUID, auth: AuthContext = Depends(require_admin)):
    """Deactivate (soft delete) a user."""
    if auth.user_id == user_id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    try:
        return envelope(users_db.deactivate_user(user_id))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.put("/{user_id}/capacity")
async def update_capacity(user_id: UUID, data: CapacityUpdate, auth: AuthContext = Depends(require_manager)):
    return envelope(users_db.update_capacity(user_id, data.hours_per_week, data.max_concurrent_courses))


@router.get("/{user_id}/courses")
async def get_user_courses(
    user_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    """Courses the user owns or is assigned to."""
    _require_self_or_manager(auth, user_id)
    result = courses_db.list_courses_for_user(user_id, limit=limit, offset=offset)
    return envelope(result["courses"], pagination=page(result["total"], limit, offset))


@router.get("/{user_id}/subtask-assignments")
async def get_subtask_assignments(user_id: UUID, auth: AuthContext = Depends(require_auth)):
    _require_self_or_manager(auth, user_id)
    return envelope(users_db.list_subtask_assignments(user_id))


@router.get("/{user_id}/workload")
async def get_workload(user_id: UUID, auth: AuthContext = Depends(require_auth)):
    """Capacity and utilization for one user."""
    _require_self_or_manager(auth, user_id)
    rows = analytics_db.fetch_workload_rows(user_id=user_id)
    workload = compute_workload(rows["users"], rows["capacity"], rows["assignments"])
    if not workload["heatmap"]:
        raise not_found("User")
    return envelope(workload["heatmap"][0])
