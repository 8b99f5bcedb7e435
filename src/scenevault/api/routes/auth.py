"""Authentication endpoints - register, login, logout, me."""

from fastapi import APIRouter, HTTPException, Request, Response, status

from src.scenevault.api.dependencies import AuthServiceDep, CurrentUser, SessionToken
from src.scenevault.core.config import get_settings
from src.scenevault.core.errors import AuthError
from src.scenevault.core.logging import get_logger
from src.scenevault.core.rate_limit import limiter
from src.scenevault.schemas.auth import (
    LoginRequest,
    LoginResponse,
    OkResponse,
    RegisterRequest,
    UserResponse,
)
from src.scenevault.schemas.user import UserRead
from src.scenevault.services import AuthService

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


def _set_session_cookie(response: Response, auth: AuthService, token: str) -> None:
    settings = auth.settings
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


@router.post(
    "/register",
    response_model=UserResponse,
    responses={
        200: {"description": "Account created and session cookie set"},
        400: {"description": "Invalid input, or email/username already taken"},
    },
)
@limiter.limit(get_settings().login_rate_limit)
async def register(
    request: Request, body: RegisterRequest, response: Response, auth: AuthServiceDep
) -> UserResponse:
    """Create an account and log it in straight away."""
    await auth.register(body.username, body.email, body.password)
    try:
        result = await auth.login(body.email, body.password)
    except AuthError as e:
        logger.error("Registration succeeded but login failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration succeeded but login failed",
        ) from e

    _set_session_cookie(response, auth, result.token)
    return UserResponse(user=UserRead.model_validate(result.user))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {"description": "Authenticated; session cookie set and token returned"},
        401: {"description": "Invalid email or password"},
    },
)
@limiter.limit(get_settings().login_rate_limit)
async def login(
    request: Request, body: LoginRequest, response: Response, auth: AuthServiceDep
) -> LoginResponse:
    """Authenticate and open a session.

    The token is returned in the body for non-browser clients and set as an
    HttpOnly cookie for the editor.
    """
    result = await auth.login(body.email, body.password)
    _set_session_cookie(response, auth, result.token)
    return LoginResponse(user=UserRead.model_validate(result.user), token=result.token)


@router.post("/logout", response_model=OkResponse)
async def logout(response: Response, token: SessionToken, auth: AuthServiceDep) -> OkResponse:
    """End the current session. Succeeds even without one."""
    await auth.logout(token)
    response.delete_cookie(auth.settings.session_cookie_name, path="/")
    return OkResponse()


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not authenticated"}},
)
async def me(user: CurrentUser) -> UserResponse:
    return UserResponse(user=UserRead.model_validate(user))
