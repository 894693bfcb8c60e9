"""Pydantic schemas for notifications."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str | None = None
    priority: str = "normal"
    entity_type: str | None = None
    entity_id: str | None = None
    read_at: str | None = None
    created_at: str
    metadata: dict = {}


class UnreadCountResponse(BaseModel):
    count: int


class NotificationPreferences(BaseModel):
    email_enabled: bool = True
    in_app_enabled: bool = True
    digest_frequency: str = Field("daily", pattern="^(never|daily|weekly)$")
    muted_types: list[str] = Field(default_factory=list)


class NotificationTestRequest(BaseModel):
    type: str = "test"
    title: str = "Test notification"
    message: Optional[str] = None


class CleanupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    days_to_keep: int = Field(30, alias="daysToKeep", ge=1, le=3650)
