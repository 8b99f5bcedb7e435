"""Project, scene and backup records."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field, JsonValue

from src.scenevault.models.base import utc_now

DEFAULT_PROJECT_TITLE = "Untitled"


def new_project_uid() -> str:
    """Random UUID4 in canonical lower-case form: only hex digits and dashes."""
    return str(uuid4())


class Project(BaseModel):
    """Project metadata. The owner never changes after creation."""

    uid: str = Field(default_factory=new_project_uid)
    owner_id: str
    title: str = DEFAULT_PROJECT_TITLE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Backup(BaseModel):
    """Immutable snapshot of a past scene document."""

    timestamp: datetime
    snapshot: JsonValue


class SceneState(BaseModel):
    """Current scene document and its backup history, stored as one record.

    Keeping both in one record lets a save or revert commit with a single
    atomic write.
    """

    document: JsonValue = None
    backups: list[Backup] = Field(default_factory=list)
