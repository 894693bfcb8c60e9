"""Pydantic schemas for workflow templates, stages, transitions and instances."""

from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StageType(str, Enum):
    PLANNING = "planning"
    CONTENT_DEVELOPMENT = "content_development"
    REVIEW = "review"
    APPROVAL = "approval"
    LEGAL_REVIEW = "legal_review"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class WorkflowStateIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    state_name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=200)
    stage_type: Optional[StageType] = None
    is_initial: bool = False
    is_final: bool = False
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    order: Optional[int] = None
    state_config: dict[str, Any] = Field(default_factory=dict)


class WorkflowTransitionIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    from_state: str = Field(..., min_length=1)
    to_state: str = Field(..., min_length=1)
    condition: str = "auto"
    order: Optional[int] = None


class WorkflowTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    is_active: bool = True
    states: list[WorkflowStateIn] = Field(..., min_length=1)
    transitions: list[WorkflowTransitionIn] = Field(default_factory=list)


class WorkflowTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    states: Optional[list[WorkflowStateIn]] = None
    transitions: Optional[list[WorkflowTransitionIn]] = None


class StageUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=200)
    stage_type: Optional[StageType] = None
    is_initial: Optional[bool] = None
    is_final: Optional[bool] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    state_config: Optional[dict[str, Any]] = None


class InstanceCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template_id: UUID = Field(..., alias="templateId")


class InstanceUpdate(BaseModel):
    notes: Optional[str] = None
    is_complete: Optional[bool] = None


class InstanceTransitionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., min_length=1, description="Target state name")
    notes: str = ""
    assign_to_user: Optional[UUID] = Field(None, alias="assignToUser")
