# bookstream/schemas/auth.py
# Pydantic request/response models for authentication endpoints

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, field_validator


# ── Register ──────────────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None  # defaults to the email local part

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        return v


# ── Login ─────────────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# ── Responses ─────────────────────────────────────────────────────────────────

class UserInfo(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by /register and /login -- user embedded so the frontend skips /me."""
    token: str
    user: UserInfo


class MeResponse(BaseModel):
    user: UserInfo


class MessageResponse(BaseModel):
    message: str
