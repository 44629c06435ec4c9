"""User request/response schemas - API contract and validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.core.guards import Permission


class SignupRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    # bcrypt accepts max 72 bytes; longer passwords cause 500. Validate here for clear 422.
    password: str = Field(..., min_length=1, max_length=72)


class SigninRequest(BaseModel):
    email: str
    password: str


class ResetRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    reset_token: str
    password: str = Field(..., min_length=1, max_length=72)
    confirm_password: str


class PermissionsUpdate(BaseModel):
    user_id: int
    permissions: list[Permission]


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    permissions: list[str]
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str
