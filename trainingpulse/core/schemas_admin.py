"""Pydantic schemas for admin lookup tables: statuses, phase statuses, roles,
permissions, settings, custom fields and bulk operations."""

from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Course statuses and phase statuses
# ============================================================================


class StatusCreate(BaseModel):
    value: str = Field(..., min_length=1, max_length=50, pattern="^[a-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=100)
    color: str = "gray"
    sort_order: int = 0
    is_active: bool = True


class StatusUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class PhaseStatusCreate(BaseModel):
    value: str = Field(..., min_length=1, max_length=50, pattern="^[a-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    color: str = "text-blue-500"
    dark_color: Optional[str] = None
    icon: str = "PlayCircle"
    sort_order: int = 1
    completion_percentage: int = Field(0, ge=0, le=100)
    is_active: bool = True
    is_default: bool = False


class PhaseStatusUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = None
    dark_color: Optional[str] = None
    icon: Optional[str] = None
    sort_order: Optional[int] = None
    completion_percentage: Optional[int] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class ReorderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_ids: list[UUID] = Field(..., alias="statusIds", min_length=1)


# ============================================================================
# Roles and permissions
# ============================================================================


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, pattern="^[a-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permission_ids: list[UUID] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    permission_ids: Optional[list[UUID]] = None


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, pattern="^[a-z0-9_.:]+$")
    description: Optional[str] = None
    category: str = "general"


class PermissionUpdate(BaseModel):
    description: Optional[str] = None
    category: Optional[str] = None


# ============================================================================
# Settings
# ============================================================================


class SettingValue(BaseModel):
    value: Any


# ============================================================================
# Custom fields
# ============================================================================


class CustomFieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    URL = "url"


class CustomFieldEntity(str, Enum):
    COURSE = "course"
    PROGRAM = "program"
    TEAM = "team"
    USER = "user"


class CustomFieldCreate(BaseModel):
    entity_type: CustomFieldEntity
    name: str = Field(..., min_length=1, max_length=100, pattern="^[a-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=200)
    field_type: CustomFieldType
    options: list[str] = Field(default_factory=list)
    is_required: bool = False
    sort_order: int = 0


class CustomFieldUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=200)
    options: Optional[list[str]] = None
    is_required: Optional[bool] = None
    sort_order: Optional[int] = None


class CustomFieldValues(BaseModel):
    values: dict[str, Any]


# ============================================================================
# Bulk operations
# ============================================================================


class BulkFilter(BaseModel):
    course_ids: list[UUID] = Field(default_factory=list)
    status: Optional[str] = None
    priority: Optional[str] = None
    program_id: Optional[UUID] = None


class BulkUpdates(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    owner_id: Optional[UUID] = None


class BulkRequest(BaseModel):
    filter: BulkFilter
    updates: BulkUpdates
    options: dict[str, Any] = Field(default_factory=dict)


class BulkExecuteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    preview_id: UUID = Field(..., alias="previewId")
    confirm_impact: bool = Field(False, alias="confirmImpact")


# ============================================================================
# Priorities and modalities
# ============================================================================


class PriorityCreate(BaseModel):
    value: str = Field(..., min_length=1, max_length=50, pattern="^[A-Za-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=100)
    icon: str = "Flag"
    color: str = "text-gray-500"
    sort_order: int = 0
    is_default: bool = False


class PriorityUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = None
    color: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class ModalityCreate(BaseModel):
    value: str = Field(..., min_length=1, max_length=50, pattern="^[A-Za-z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    sort_order: int = Field(0, ge=0)
    is_active: bool = True


class ModalityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ModalityTaskCreate(BaseModel):
    modality: str = Field(..., min_length=1, max_length=50)
    task_type: str = Field(..., min_length=1, max_length=50)
    order_index: int = Field(..., ge=1)
    weight_percentage: int = Field(100, ge=0, le=100)


class ModalityTaskUpdate(BaseModel):
    task_type: Optional[str] = Field(None, min_length=1, max_length=50)
    order_index: Optional[int] = Field(None, ge=1)
    weight_percentage: Optional[int] = Field(None, ge=0, le=100)


class ModalityTaskReorder(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    modality: str = Field(..., min_length=1)
    task_ids: list[UUID] = Field(..., alias="taskIds", min_length=1)
