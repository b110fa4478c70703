# src/modules/patients/patients_controller.py
"""Patient endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.cache import CacheService
from src.common.database.database import get_db_session
from src.common.dependencies import get_cache
from src.models.models import User

from . import patients_service as service
from .schemas import (
    CreateVisitRecordRequest, CreateVisitRecordResponse, PatientDetailResponse,
    PatientsListResponse, UpsertPatientRequest, UpsertPatientResponse,
)


router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("", response_model=PatientsListResponse)
async def list_patients(
    search: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Patients visible to the caller, with computed age."""
    patients, total = await service.list_patients(db, current_user, search, limit, offset)
    return PatientsListResponse(patients=patients, total=total)


@router.post("", response_model=UpsertPatientResponse)
async def upsert_patient(
    request: UpsertPatientRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create or update a patient's clinical profile (doctor/admin)."""
    created = await service.upsert_patient_record(
        db,
        current_user,
        request.id,
        date_of_birth=request.date_of_birth,
        gender=request.gender,
        blood_type=request.blood_type,
        emergency_contact=request.emergency_contact,
    )
    message = "Patient record created" if created else "Patient record updated"
    return UpsertPatientResponse(created=created, message=message)


@router.get("/{patient_id}", response_model=PatientDetailResponse)
async def get_patient(
    patient_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Get a patient with:
    - Last 10 visit records
    - Active prescriptions
    - Latest vitals
    - Age computed from date of birth
    """
    patient = await service.get_patient_detail(db, current_user, patient_id)
    return PatientDetailResponse(patient=patient)


@router.post("/{patient_id}/records", response_model=CreateVisitRecordResponse, status_code=status.HTTP_201_CREATED)
async def add_visit_record(
    patient_id: UUID,
    request: CreateVisitRecordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
):
    """Record a visit for a patient (doctor/admin)."""
    record = await service.add_visit_record(
        db,
        current_user,
        patient_id,
        diagnosis=request.diagnosis,
        notes=request.notes,
        visit_date=request.visit_date,
        cache=cache,
    )
    return CreateVisitRecordResponse(record=record)
