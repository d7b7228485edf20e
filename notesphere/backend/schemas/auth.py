"""
Auth Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from notesphere.backend.core.utils import as_utc


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, examples=["ada@example.com"])
    password: str = Field(min_length=1, max_length=72)
    display_name: str | None = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public profile of a user."""

    id: str
    email: str
    display_name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at")
    def _serialize_utc(self, value: datetime) -> datetime:
        return as_utc(value)


class TokenResponse(BaseModel):
    """Bearer token plus the profile it was issued for."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse
