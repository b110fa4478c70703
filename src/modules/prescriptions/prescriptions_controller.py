# Prescriptions Controller

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.cache import CacheService
from src.common.database.database import get_db_session
from src.common.dependencies import get_cache, get_llm
from src.common.llm import LLMService
from src.models.models import PrescriptionStatus, User

from . import prescriptions_service as service
from .schemas import (
    CreatePrescriptionRequest, PrescriptionEnvelope, PrescriptionStatusEnum,
    PrescriptionsListResponse, SuggestMedicationsRequest, SuggestMedicationsResponse,
    UpdateStatusRequest,
)


router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


@router.get("", response_model=PrescriptionsListResponse)
async def list_prescriptions(
    patient_id: Optional[UUID] = Query(default=None, alias="patientId"),
    status_filter: Optional[PrescriptionStatusEnum] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """List prescriptions visible to the caller."""
    target_status = PrescriptionStatus(status_filter.value) if status_filter else None
    prescriptions = await service.list_prescriptions(db, current_user, patient_id, target_status)
    return PrescriptionsListResponse(prescriptions=prescriptions, total=len(prescriptions))


@router.post("", response_model=PrescriptionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_prescription(
    request: CreatePrescriptionRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
):
    """
    Create a prescription (doctor/admin).

    Every medication needs a name, dosage, frequency and duration.
    The patient is notified when the prescription is active.
    """
    prescription = await service.create_prescription(
        db,
        current_user,
        request.patient_id,
        request.medications,
        notes=request.notes,
        ai_generated=request.ai_generated,
        status=PrescriptionStatus(request.status.value),
        cache=cache,
    )
    return PrescriptionEnvelope(prescription=prescription)


@router.post("/suggest", response_model=SuggestMedicationsResponse)
async def suggest_medications(
    request: SuggestMedicationsRequest,
    current_user: User = Depends(get_current_user),
    llm: LLMService = Depends(get_llm),
    cache: CacheService = Depends(get_cache),
):
    """AI medication suggestions for review before prescribing (doctor/admin)."""
    suggestions, remaining = await service.suggest_medications(
        current_user,
        llm,
        cache,
        symptoms=request.symptoms,
        diagnosis=request.diagnosis,
        patient_history=request.patient_history,
    )
    return SuggestMedicationsResponse(suggestions=suggestions, remaining=remaining)


@router.patch("/{prescription_id}/status", response_model=PrescriptionEnvelope)
async def update_status(
    prescription_id: UUID,
    request: UpdateStatusRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
):
    """Advance a prescription: draft -> active -> completed (doctor/admin)."""
    prescription = await service.update_prescription_status(
        db,
        current_user,
        prescription_id,
        PrescriptionStatus(request.status.value),
        cache=cache,
    )
    return PrescriptionEnvelope(prescription=prescription)
