"""User and session records."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from src.scenevault.models.base import utc_now


class User(BaseModel):
    """Public view of a user. Never carries the password hash."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    username: str
    email: str
    created_at: datetime = Field(default_factory=utc_now)


class UserRecord(User):
    """User as persisted, including the Argon2id password hash."""

    hashed_password: str

    def to_public(self) -> User:
        return User.model_validate(self.model_dump(exclude={"hashed_password"}))


class Session(BaseModel):
    """A bearer session. Persisted under the hash of its token, never the token."""

    token: str = Field(exclude=True)
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or utc_now())
