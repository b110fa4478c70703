# Stats Controller

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.cache import CacheService
from src.common.database.database import get_db_session
from src.common.dependencies import get_cache
from src.models.models import User

from . import stats_service as service
from .schemas import StatsResponse


router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
):
    """Dashboard counts for the caller's role."""
    stats, cached = await service.get_stats(db, current_user, cache)
    return StatsResponse(role=current_user.role, cached=cached, stats=stats)
