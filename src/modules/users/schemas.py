# src/modules/users/schemas.py

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.models.models import UserRole


class UserResponse(BaseModel):
    id: UUID
    email: EmailStr
    name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UsersListResponse(BaseModel):
    users: List[UserResponse]


class CreateUserRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole
    phone: Optional[str] = Field(default=None, max_length=30)


class CreateUserResponse(BaseModel):
    success: bool = True
    user: UserResponse
