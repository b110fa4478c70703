# src/auth/schemas.py

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.common.utils.global_messages import GlobalMessages
from src.models.models import UserRole


class SignupRole(str, Enum):
    """Roles a person may pick for themselves when signing up. Admins are provisioned, never self-assigned."""
    PATIENT = "patient"
    DOCTOR = "doctor"


class SyncUserRequest(BaseModel):
    """Identity delivered by the identity provider after sign-up or sign-in."""
    id: UUID
    email: EmailStr
    name: Optional[str] = None
    role: SignupRole = SignupRole.PATIENT


class UserResponse(BaseModel):
    id: UUID
    email: EmailStr
    name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SyncUserResponse(BaseModel):
    success: bool = True
    reconciled: bool = False
    user: UserResponse


class CreatePatientRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str
    phone: Optional[str] = Field(default=None, max_length=30)

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError(GlobalMessages.PASSWORD_TOO_SHORT)
        return value


class CreatePatientResponse(BaseModel):
    success: bool = True
    user: UserResponse


class LogoutResponse(BaseModel):
    message: str = GlobalMessages.LOGOUT_SUCCESS
