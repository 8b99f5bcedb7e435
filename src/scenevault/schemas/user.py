from datetime import datetime

from pydantic import BaseModel


class UserRead(BaseModel):
    """Schema for reading a user."""

    id: str
    username: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}
