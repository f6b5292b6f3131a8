"""Pydantic schemas for users and tokens.

Learn: Pydantic v2 models validate request/response data. Separate
"Create" schemas (input) from "Read" schemas (output) for clean APIs.
The wire format is camelCase (fullName, createdAt) while Python stays
snake_case, so aliases do the translation at the edge.

UserRead has no password field at all, so the hash cannot be serialized
back to a client by accident.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

MIN_PASSWORD_LENGTH = 6


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("Username is required")
    return v


# ─── Registration / login ───────────────────────────────

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    full_name: str = Field(default="", max_length=100, validation_alias="fullName")
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        return _not_blank(v)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str


# ─── Update ─────────────────────────────────────────────

class UserUpdate(BaseModel):
    """Any subset of the profile fields. Omitted fields are left alone."""

    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(
        None, max_length=100, validation_alias="fullName"
    )
    password: Optional[str] = Field(None, min_length=MIN_PASSWORD_LENGTH)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _not_blank(v)


# ─── Read ───────────────────────────────────────────────

class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    full_name: str = Field(serialization_alias="fullName")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    msg: str
