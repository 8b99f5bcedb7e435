"""Authentication and ownership dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from src.scenevault.api.dependencies.state import AuthServiceDep, ProjectServiceDep
from src.scenevault.core.logging import bind_user_context
from src.scenevault.core.security import is_valid_project_uid
from src.scenevault.models import Project, User

NOT_AUTHENTICATED = "Not authenticated"


def get_session_token(
    request: Request,
    auth: AuthServiceDep,
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(auth.settings.session_cookie_name)


SessionToken = Annotated[str | None, Depends(get_session_token)]


async def get_current_user(token: SessionToken, auth: AuthServiceDep) -> User:
    """Resolve the session token to a user, or fail with 401."""
    session = await auth.get_session(token)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)

    user = await auth.get_user_by_id(session.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)

    bind_user_context(user.id)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_owned_project(uid: str, user: CurrentUser, projects: ProjectServiceDep) -> Project:
    """Load the project named in the path and require the caller to own it.

    Unknown or malformed uids are 404; someone else's project is 403.
    """
    if not is_valid_project_uid(uid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    project = await projects.get(uid)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if project.owner_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return project


OwnedProject = Annotated[Project, Depends(get_owned_project)]
