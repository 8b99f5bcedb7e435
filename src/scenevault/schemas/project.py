"""Project schemas for API request/response."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    title: str | None = Field(default=None, max_length=200)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    uid: str
    owner_id: str
    title: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectResponse(BaseModel):
    project: ProjectRead


class ProjectListResponse(BaseModel):
    projects: list[ProjectRead]


class BackupSummary(BaseModel):
    """A backup as listed to clients: position and time, without the snapshot."""

    index: int
    timestamp: datetime


class BackupListResponse(BaseModel):
    backups: list[BackupSummary]
