# Users Controller

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.database.database import get_db_session
from src.common.utils.email_service import send_account_invitation_email
from src.models.models import User, UserRole

from . import users_service as service
from .schemas import CreateUserRequest, CreateUserResponse, UserResponse, UsersListResponse


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UsersListResponse)
async def list_users(
    role: Optional[UserRole] = None,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """List every account (admin only), optionally filtered by role."""
    users = await service.list_users(db, current_user, role)
    return UsersListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.post("/create", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Pre-provision an account (admin only). The person is invited to sign up with the same email."""
    user = await service.create_user(
        db,
        current_user,
        email=request.email,
        name=request.name,
        role=request.role,
        phone=request.phone,
    )
    background_tasks.add_task(send_account_invitation_email, user.email, user.name, user.role.value)
    return CreateUserResponse(user=UserResponse.model_validate(user))
