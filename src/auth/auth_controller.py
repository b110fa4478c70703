# src/auth/auth_controller.py

import hmac
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import auth_service, schemas
from src.auth.dependencies import get_current_user
from src.common.config import settings
from src.common.database.database import get_db_session
from src.common.exceptions import Unauthenticated
from src.common.utils.email_service import send_account_invitation_email
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import User

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=auth_service.create_session_token(user.id),
        max_age=settings.SESSION_EXPIRATION_MINUTES * 60,
        httponly=True,
        secure=settings.APP_ENV == "production",
        samesite="lax",
    )


def check_sync_secret(provided: Optional[str]) -> None:
    """Only the identity provider, holding the shared secret, may sync users. Sync is refused when no secret is set."""
    expected = settings.AUTH_SYNC_SECRET
    if not expected:
        logger.error("sync_secret_not_configured")
        raise Unauthenticated(GlobalMessages.SYNC_NOT_CONFIGURED)
    if not provided or not hmac.compare_digest(provided, expected):
        raise Unauthenticated(GlobalMessages.INVALID_SYNC_SECRET)


@router.post("/sync-user", response_model=schemas.SyncUserResponse)
async def sync_user(
    payload: schemas.SyncUserRequest,
    response: Response,
    x_auth_sync_secret: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Upsert the account delivered by the identity provider and start a session.

    - **id**: identity provider user id
    - **email**: verified email; links to a pre-provisioned account with the same email
    - **name**: display name
    - **role**: patient or doctor (ignored when the account was pre-provisioned)
    """
    check_sync_secret(x_auth_sync_secret)
    user, reconciled = await auth_service.sync_user(
        db,
        user_id=payload.id,
        email=payload.email,
        name=payload.name,
        signup_role=payload.role,
    )
    set_session_cookie(response, user)
    return schemas.SyncUserResponse(reconciled=reconciled, user=schemas.UserResponse.model_validate(user))


@router.post("/create-patient", response_model=schemas.CreatePatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: schemas.CreatePatientRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Provision a patient account (doctor/admin). The patient is invited to finish sign-up."""
    user = await auth_service.provision_patient(
        db,
        current_user,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
    )
    background_tasks.add_task(send_account_invitation_email, user.email, user.name, user.role.value)
    return schemas.CreatePatientResponse(user=schemas.UserResponse.model_validate(user))


@router.get("/me", response_model=schemas.UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=schemas.LogoutResponse)
async def logout(response: Response):
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, httponly=True, samesite="lax")
    return schemas.LogoutResponse()
