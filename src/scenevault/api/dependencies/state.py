"""Service dependencies, resolved from the AppState attached at startup."""

from typing import Annotated

from fastapi import Depends, Request

from src.scenevault.core.state import AppState
from src.scenevault.services import AuthService, ProjectService


def get_app_state(request: Request) -> AppState:
    return request.app.state.scenevault  # type: ignore[no-any-return]


AppStateDep = Annotated[AppState, Depends(get_app_state)]


def get_auth_service(state: AppStateDep) -> AuthService:
    return state.auth


def get_project_service(state: AppStateDep) -> ProjectService:
    return state.projects


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
