"""Authentication middleware for FastAPI."""

from typing import Any, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trainingpulse.core import permissions
from trainingpulse.core.config import get_settings
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_auth import UserRole

logger = get_logger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)

# System admin user for API key auth
SYSTEM_ADMIN: dict[str, Any] = {
    "id": "00000000-0000-0000-0000-000000000001",
    "email": "system@trainingpulse.local",
    "name": "System",
    "role": UserRole.ADMIN.value,
    "is_active": True,
}


class AuthContext:
    """Context object containing authenticated user info."""

    def __init__(self, user: dict[str, Any], token: str):
        self.user = user
        self.token = token
        self.user_id = UUID(str(user["id"]))

    @property
    def role(self) -> str:
        return self.user.get("role") or UserRole.VIEWER.value

    @property
    def is_admin(self) -> bool:
        return permissions.is_admin(self.user)

    @property
    def can_manage(self) -> bool:
        return permissions.can_manage(self.user)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[AuthContext]:
    """
    Extract and validate the current user from the request.

    Supports two authentication methods:
    1. Supabase access tokens (Bearer auth)
    2. Admin API key (X-API-Key header) for internal tools

    Returns None if no valid auth is present.
    """
    admin_key = get_settings().ADMIN_API_KEY
    if x_api_key and admin_key and x_api_key == admin_key:
        logger.debug("Authenticated via admin API key")
        return AuthContext(user=SYSTEM_ADMIN, token="api-key")

    if not credentials:
        return None

    token = credentials.credentials

    try:
        from trainingpulse.db.supabase_client import get_supabase
        from trainingpulse.db.users import get_user

        # Validates signature and expiry
        auth_response = get_supabase().auth.get_user(token)
        if not auth_response or not auth_response.user:
            return None

        user = get_user(auth_response.user.id)
    except Exception as e:
        logger.warning(f"Auth error: {e}")
        return None

    if not user:
        logger.warning(f"Authenticated user {auth_response.user.id} has no users row")
        return None

    if not user.get("is_active", True):
        logger.info(f"Rejected inactive user {user['id']}")
        return None

    return AuthContext(user=user, token=token)


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user),
) -> AuthContext:
    """Require authentication. Raises 401 if not authenticated."""
    if not auth:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth


class RoleChecker:
    """Dependency class requiring one of a set of roles."""

    def __init__(self, *roles: UserRole):
        self.roles = tuple(r.value for r in roles)

    async def __call__(self, auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in self.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(self.roles)}",
            )
        return auth


# Pre-configured role checkers
require_manager = RoleChecker(UserRole.ADMIN, UserRole.MANAGER)
require_admin = RoleChecker(UserRole.ADMIN)
require_analytics_access = RoleChecker(UserRole.ADMIN, UserRole.MANAGER, UserRole.REVIEWER)
