# Vitals Controller

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.cache import CacheService
from src.common.database.database import get_db_session
from src.common.dependencies import get_cache
from src.models.models import User

from . import vitals_service as service
from .schemas import RecordVitalsRequest, RecordVitalsResponse, VitalsResponse


router = APIRouter(prefix="/vitals", tags=["Vitals"])


@router.get("", response_model=VitalsResponse)
async def get_vitals(
    patient_id: Optional[UUID] = Query(default=None, alias="patientId"),
    limit: int = Query(default=service.DEFAULT_LIMIT, ge=1, le=365),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Latest readings with per-metric averages. Patients default to their own."""
    resolved_id, readings, averages = await service.get_vitals(db, current_user, patient_id, limit)
    return VitalsResponse(patient_id=resolved_id, vitals=readings, averages=averages, total=len(readings))


@router.post("", response_model=RecordVitalsResponse, status_code=status.HTTP_201_CREATED)
async def record_vitals(
    request: RecordVitalsRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
):
    """Record a new set of vital signs."""
    vital = await service.record_vitals(db, current_user, request, cache=cache)
    return RecordVitalsResponse(vital=vital)
