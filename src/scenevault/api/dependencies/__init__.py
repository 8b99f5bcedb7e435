"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

from src.scenevault.api.dependencies.auth import (
    NOT_AUTHENTICATED,
    CurrentUser,
    OwnedProject,
    SessionToken,
    get_current_user,
    get_owned_project,
    get_session_token,
)
from src.scenevault.api.dependencies.state import (
    AppStateDep,
    AuthServiceDep,
    ProjectServiceDep,
    get_app_state,
    get_auth_service,
    get_project_service,
)

__all__ = [
    # State
    "AppStateDep",
    "AuthServiceDep",
    "ProjectServiceDep",
    "get_app_state",
    "get_auth_service",
    "get_project_service",
    # Auth
    "NOT_AUTHENTICATED",
    "CurrentUser",
    "OwnedProject",
    "SessionToken",
    "get_current_user",
    "get_owned_project",
    "get_session_token",
]
