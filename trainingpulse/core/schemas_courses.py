"""Pydantic schemas for courses, subtasks (phases) and assignments."""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trainingpulse.core.phase_dates import as_utc


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    code: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = None
    priority: str = Field("medium", min_length=1, max_length=50)
    modality: Optional[str] = None
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    owner_id: Optional[UUID] = None
    program_id: Optional[UUID] = None
    team_id: Optional[UUID] = None
    workflow_template_id: Optional[UUID] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    code: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = None
    priority: Optional[str] = Field(None, min_length=1, max_length=50)
    modality: Optional[str] = None
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    owner_id: Optional[UUID] = None
    program_id: Optional[UUID] = None
    team_id: Optional[UUID] = None


class CourseStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    notes: Optional[str] = None


class CourseTransitionRequest(BaseModel):
    """Workflow transition request; the client sends camelCase ``newState``."""
    model_config = ConfigDict(populate_by_name=True)

    new_state: str = Field(..., alias="newState", min_length=1)
    notes: str = ""


class DependencyCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    depends_on_course_id: UUID = Field(..., alias="dependsOnCourseId")
    dependency_type: str = Field("blocks", alias="dependencyType", min_length=1, max_length=50)


class AssignmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId")
    role: str = "designer"
    due_date: Optional[date] = Field(None, alias="dueDate")


# ============================================================================
# Subtasks (phases)
# ============================================================================


class SubtaskCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    status: str = ""
    is_blocking: bool = Field(False, alias="isBlocking")
    weight: int = Field(1, ge=0)
    order_index: int = Field(0, alias="orderIndex", ge=0)
    task_type: Optional[str] = Field(None, alias="taskType")


class SubtaskUpdate(BaseModel):
    """Partial subtask update. Accepts both snake_case and camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[str] = None
    is_blocking: Optional[bool] = Field(None, alias="isBlocking")
    weight: Optional[int] = Field(None, ge=0)
    order_index: Optional[int] = Field(None, alias="orderIndex", ge=0)


class Subtask(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="allow")

    id: UUID
    course_id: UUID
    title: str
    status: str = ""
    is_blocking: bool = False
    weight: int = 1
    order_index: int = 0
    start_date: Optional[datetime] = None
    finish_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PhaseHistoryUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    started_at: Optional[datetime] = Field(None, alias="startedAt")
    finished_at: Optional[datetime] = Field(None, alias="finishedAt")

    @field_validator("started_at", "finished_at")
    @classmethod
    def normalise_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class CourseStatusReport(BaseModel):
    course_id: UUID
    manual_status: Optional[str] = None
    workflow_state: Optional[str] = None
    calculated_status: str
    completion_percentage: int
    is_overdue: bool
    has_blocking_incomplete: bool
    status_reason: str
    recommendations: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
