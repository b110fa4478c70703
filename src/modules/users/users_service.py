# Users Service

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.access import Action, authorize
from src.common.exceptions import Conflict
from src.common.utils.logger import get_logger
from src.models.models import Doctor, Patient, User, UserRole

logger = get_logger(__name__)


def add_extension_row(db: AsyncSession, user_id: uuid.UUID, role: UserRole) -> None:
    """Stage the Patient or Doctor row that shares ``user_id``. Admins have none."""
    if role == UserRole.PATIENT:
        db.add(Patient(id=user_id))
    elif role == UserRole.DOCTOR:
        db.add(Doctor(id=user_id))


async def provision_account(
    db: AsyncSession,
    email: str,
    name: str,
    role: UserRole,
    phone: Optional[str] = None,
) -> User:
    """
    Create a user under a temporary id together with its extension row.

    The email must be unused. The temporary id is replaced once the person
    signs up through the identity provider (see ``auth_service.sync_user``).
    """
    result = await db.execute(select(User.id).where(User.email == email))
    if result.first() is not None:
        raise Conflict()

    user = User(id=uuid.uuid4(), email=email, name=name, phone=phone, role=role, provisioned=True)
    db.add(user)
    try:
        await db.flush()
        add_extension_row(db, user.id, role)
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent request for the same email
        await db.rollback()
        raise Conflict()

    await db.refresh(user)
    return user


async def list_users(db: AsyncSession, actor: User, role: Optional[UserRole] = None) -> List[User]:
    authorize(actor, Action.LIST_USERS)

    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    query = query.order_by(User.created_at.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    actor: User,
    email: str,
    name: str,
    role: UserRole,
    phone: Optional[str] = None,
) -> User:
    """Admin pre-provisioning of an account with any role."""
    authorize(actor, Action.CREATE_USER)
    user = await provision_account(db, email=email, name=name, role=role, phone=phone)
    logger.info("user_provisioned", user_id=str(user.id), role=role.value, by=str(actor.id))
    return user
