"""
VideoTube Backend — User Schemas
==================================

What:  Pydantic models for the users API.
Why:   UserPublic is the only user shape ever serialized: password hashes and
       refresh tokens never leave the service layer.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class UserPublic(BaseModel):
    """A user as shown to clients."""
    id: uuid.UUID
    username: str
    email: str
    fullname: str
    avatar: str = Field(description="Cloudinary URL of the avatar")
    cover_image: Optional[str] = Field(default=None, description="Cloudinary URL of the cover image")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    """Login by username or email."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(min_length=1)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not (self.username or self.email):
            raise ValueError("username or email is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.username or self.email or "").strip()


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")

    model_config = {"populate_by_name": True}


class TokenPair(BaseModel):
    access_token: str = Field(serialization_alias="accessToken")
    refresh_token: str = Field(serialization_alias="refreshToken")


class LoginResult(BaseModel):
    """Payload of a successful login."""
    user: UserPublic
    access_token: str = Field(serialization_alias="accessToken")
    refresh_token: str = Field(serialization_alias="refreshToken")
