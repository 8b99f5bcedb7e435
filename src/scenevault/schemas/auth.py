from pydantic import BaseModel

from src.scenevault.schemas.user import UserRead


class RegisterRequest(BaseModel):
    """Registration body. Field rules are enforced by AuthService so the
    client gets the same 400 messages whatever the transport."""

    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    user: UserRead


class LoginResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"


class OkResponse(BaseModel):
    ok: bool = True
