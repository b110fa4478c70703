# src/auth/auth_service.py

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

import jwt
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from src.auth.schemas import SignupRole
from src.common.access import Action, authorize
from src.common.config import settings
from src.common.exceptions import Conflict
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import (
    Doctor, MedicalReport, Notification, Patient, PatientRecord,
    Prescription, User, UserRole, Vital,
)
from src.modules.users import users_service

logger = get_logger(__name__)

# Every column holding a user id; re-keyed together during reconciliation.
USER_ID_COLUMNS = (
    (Patient, Patient.id),
    (Doctor, Doctor.id),
    (Prescription, Prescription.patient_id),
    (Prescription, Prescription.doctor_id),
    (MedicalReport, MedicalReport.patient_id),
    (MedicalReport, MedicalReport.doctor_id),
    (Vital, Vital.patient_id),
    (Notification, Notification.user_id),
    (PatientRecord, PatientRecord.patient_id),
    (PatientRecord, PatientRecord.doctor_id),
)


def create_session_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token for ``user_id``."""
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta else timedelta(minutes=settings.SESSION_EXPIRATION_MINUTES)
    )
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[UUID]:
    """Return the user id carried by a valid token, or None for anything expired, forged or malformed."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            return None
        return UUID(subject)
    except (jwt.InvalidTokenError, ValueError, TypeError):
        return None


def map_signup_role_to_user_role(signup_role: SignupRole) -> UserRole:
    if signup_role == SignupRole.DOCTOR:
        return UserRole.DOCTOR
    return UserRole.PATIENT


async def rekey_user(db: AsyncSession, old_id: UUID, new_id: UUID) -> None:
    """Move a user and everything that references it from ``old_id`` to ``new_id``.

    Runs inside the caller's transaction. With ON UPDATE CASCADE foreign keys
    the follow-up updates match no rows; they are still issued so that the
    re-key holds on backends that do not enforce foreign keys.
    """
    await db.execute(
        update(User)
        .where(User.id == old_id)
        .values(id=new_id)
        .execution_options(synchronize_session=False)
    )
    for model, column in USER_ID_COLUMNS:
        await db.execute(
            update(model)
            .where(column == old_id)
            .values({column.key: new_id})
            .execution_options(synchronize_session=False)
        )


async def sync_user(
    db: AsyncSession,
    user_id: UUID,
    email: str,
    name: Optional[str] = None,
    signup_role: SignupRole = SignupRole.PATIENT,
) -> Tuple[User, bool]:
    """
    Upsert the account delivered by the identity provider.

    If an account with the same email was provisioned earlier under a
    temporary id, it is re-keyed to ``user_id`` along with every dependent row.
    The provisioned role is kept in that case. An account already linked to
    another identity is never moved. Returns the user and whether a
    reconciliation happened.
    """
    reconciled = False
    try:
        result = await db.execute(select(User.id, User.provisioned).where(User.email == email))
        existing = result.first()

        if existing is not None and existing.id != user_id:
            # Only accounts still waiting under a temporary id may be claimed
            if not existing.provisioned:
                raise Conflict(GlobalMessages.IDENTITY_ALREADY_LINKED)

            taken = await db.execute(select(User.id).where(User.id == user_id))
            if taken.first() is not None:
                raise Conflict(GlobalMessages.IDENTITY_ALREADY_LINKED)

            logger.info("identity_reconciling", old_id=str(existing.id), new_id=str(user_id))
            await rekey_user(db, existing.id, user_id)
            reconciled = True

        if existing is not None:
            values = {"provisioned": False}
            if name:
                values["name"] = name
            await db.execute(
                update(User)
                .where(User.id == user_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        else:
            by_id = await db.execute(select(User.id).where(User.id == user_id))
            if by_id.first() is not None:
                # Email changed at the identity provider
                values = {"email": email}
                if name:
                    values["name"] = name
                await db.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
            else:
                role = map_signup_role_to_user_role(signup_role)
                db.add(User(id=user_id, email=email, name=name, role=role))
                await db.flush()
                users_service.add_extension_row(db, user_id, role)

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("user_sync_failed", user_id=str(user_id))
        raise
    except Conflict:
        await db.rollback()
        raise

    db.expire_all()
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().one()
    logger.info("user_synced", user_id=str(user.id), role=user.role.value, reconciled=reconciled)
    return user, reconciled


async def provision_patient(
    db: AsyncSession,
    actor: User,
    name: str,
    email: str,
    phone: Optional[str] = None,
) -> User:
    """
    Create a patient account on a doctor's or admin's behalf.

    The account gets a temporary id; it is reconciled with the identity
    provider's id when the patient completes sign-up with the same email.
    """
    authorize(actor, Action.PROVISION_PATIENT)
    user = await users_service.provision_account(db, email=email, name=name, role=UserRole.PATIENT, phone=phone)
    logger.info("patient_provisioned", user_id=str(user.id), by=str(actor.id))
    return user
