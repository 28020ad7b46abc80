"""Pydantic schemas for users and sessions.

Learn: UserRead is the only shape a user ever leaves the service layer in.
It has no password hash and no session list, so neither can leak into a
response by accident.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=7)
    age: int = Field(default=0, ge=0)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserUpdate(BaseModel):
    """Profile update — the only fields a user may change about themselves."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=7)
    age: Optional[int] = Field(None, ge=0)


class AvatarPaths(BaseModel):
    original: str
    small: str
    large: str


class UserRead(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    age: int
    avatar: AvatarPaths
    created_at: datetime
    updated_at: datetime


class AuthResult(BaseModel):
    """Returned by sign-up and login."""

    user: UserRead
    token: str


class UserEnvelope(BaseModel):
    user: UserRead


class AvatarEnvelope(BaseModel):
    avatar: AvatarPaths
