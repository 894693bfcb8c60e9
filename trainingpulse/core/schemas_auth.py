"""Pydantic schemas for authentication and user management."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRole(str, Enum):
    """Application roles, most privileged first."""
    ADMIN = "admin"
    MANAGER = "manager"
    DESIGNER = "designer"
    REVIEWER = "reviewer"
    VIEWER = "viewer"


MANAGING_ROLES = (UserRole.ADMIN, UserRole.MANAGER)


# ============================================================================
# Auth requests
# ============================================================================


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.DESIGNER


class RefreshRequest(BaseModel):
    """Refresh payload; the client sends camelCase ``refreshToken``."""
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


# ============================================================================
# User Schemas
# ============================================================================


class UserBase(BaseModel):
    email: EmailStr
    name: str
    role: UserRole = UserRole.VIEWER


class UserCreate(UserBase):
    """Schema for creating a new user."""
    team_id: Optional[UUID] = None
    password: Optional[str] = Field(None, min_length=8)


class UserUpdate(BaseModel):
    """Schema for updating a user. Only set fields are written."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    team_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class CapacityUpdate(BaseModel):
    hours_per_week: float = Field(..., ge=0, le=80)
    max_concurrent_courses: int = Field(5, ge=0)


class User(UserBase):
    """Full user schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    is_active: bool = True
    team_id: Optional[UUID] = None
    title: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
