from src.scenevault.models.base import utc_now
from src.scenevault.models.project import (
    DEFAULT_PROJECT_TITLE,
    Backup,
    Project,
    SceneState,
    new_project_uid,
)
from src.scenevault.models.user import Session, User, UserRecord

__all__ = [
    "DEFAULT_PROJECT_TITLE",
    "Backup",
    "Project",
    "SceneState",
    "Session",
    "User",
    "UserRecord",
    "new_project_uid",
    "utc_now",
]
