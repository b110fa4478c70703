# src/auth/dependencies.py

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from src.auth.auth_service import decode_session_token
from src.common.config import settings
from src.common.database.database import get_db_session
from src.common.exceptions import Unauthenticated
from src.common.utils.logger import get_logger
from src.models.models import User

logger = get_logger(__name__)

# The session cookie is the primary credential; the header serves API clients
bearer_scheme = HTTPBearer(auto_error=False)


def read_session_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None) -> Optional[str]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


async def resolve_session(
    request: Request,
    db: AsyncSession,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[User]:
    """
    Return the user behind the request's session credential, or None.

    Never raises: a missing, expired or forged token, an unknown user id and a
    failed lookup all come back as None.
    """
    token = read_session_token(request, credentials)
    if not token:
        return None

    user_id = decode_session_token(token)
    if user_id is None:
        return None

    try:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()
    except SQLAlchemyError:
        logger.warning("session_lookup_failed", user_id=str(user_id), exc_info=True)
        return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Dependency to retrieve the authenticated user from the session cookie or Authorization header.
    """
    user = await resolve_session(request, db, credentials)
    if user is None:
        raise Unauthenticated()
    return user
