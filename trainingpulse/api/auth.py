"""Authentication API endpoints backed by Supabase Auth sessions."""

from fastapi import APIRouter, Depends, HTTPException, status

from trainingpulse.api.helpers import envelope
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_auth import LoginRequest, RefreshRequest, RegisterRequest
from trainingpulse.db import users as users_db
from trainingpulse.db.rows import utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(request: LoginRequest):
    """Login with email and password. Returns tokens and the user profile."""
    try:
        client = get_supabase()
        response = client.auth.sign_in_with_password({
            "email": request.email,
            "password": request.password,
        })
        if not response or not response.session:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        session = response.session
        user = users_db.get_user(response.user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user or not user.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is inactive or missing",
        )

    users_db.update_user(user["id"], {"last_login_at": utcnow_iso()})
    logger.info(f"User {user['id']} logged in")
    return envelope({
        "accessToken": session.access_token,
        "refreshToken": session.refresh_token,
        "user": user,
    })


@router.post("/register", status_code=201)
async def register(request: RegisterRequest):
    """Create an auth account and its users row."""
    if users_db.get_user_by_email(request.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    try:
        client = get_supabase()
        response = client.auth.admin.create_user({
            "email": request.email,
            "password": request.password,
            "email_confirm": True,
        })
        user = users_db.create_user(
            response.user.id,
            {"email": request.email, "name": request.name, "role": request.role.value},
        )
    except Exception as e:
        logger.exception(f"Registration failed for {request.email}")
        raise HTTPException(status_code=500, detail="Failed to register user") from e

    return envelope(user)


@router.post("/refresh")
async def refresh(request: RefreshRequest):
    """Exchange a refresh token for a new access token."""
    try:
        client = get_supabase()
        response = client.auth.refresh_session(request.refresh_token)
        if not response or not response.session:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token",
            )
        session = response.session
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Token refresh error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Failed to refresh token",
        )

    return envelope({"accessToken": session.access_token, "refreshToken": session.refresh_token})


@router.post("/logout")
async def logout(auth: AuthContext = Depends(require_auth)):
    """Log out the current user."""
    try:
        get_supabase().auth.admin.sign_out(auth.token)
    except Exception as e:
        # The access token still expires on its own
        logger.warning(f"Logout error for {auth.user_id}: {e}")
    return envelope({"message": "Logged out"})
