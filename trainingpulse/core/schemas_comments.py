"""Pydantic schemas for comments."""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entity_type: str = Field(..., alias="entityType", min_length=1, max_length=50)
    entity_id: str = Field(..., alias="entityId", min_length=1)
    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: Optional[UUID] = Field(None, alias="parentId")
    mentions: list[UUID] = Field(default_factory=list)
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class CommentReply(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    mentions: list[UUID] = Field(default_factory=list)
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class CommentUpdate(CommentReply):
    pass
