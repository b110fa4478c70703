# src/modules/patients/patients_service.py
"""Patient listing, profile upsert, detail view and visit records."""

from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.access import Action, authorize
from src.common.cache import CacheService, stats_cache_keys
from src.common.exceptions import NotFound
from src.common.utils.global_functions import calculate_age, format_blood_pressure
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import (
    Patient, PatientRecord, Prescription, PrescriptionStatus, User, UserRole, Vital,
)

from .schemas import (
    CurrentMedication, EmergencyContact, LatestVitals, PatientDetail,
    PatientSummary, VisitRecordResponse,
)

logger = get_logger(__name__)

RECENT_RECORDS_LIMIT = 10


def to_summary(patient: Patient, user: User) -> PatientSummary:
    return PatientSummary(
        id=patient.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        date_of_birth=patient.date_of_birth,
        gender=patient.gender,
        blood_type=patient.blood_type,
        emergency_contact=patient.emergency_contact,
        age=calculate_age(patient.date_of_birth),
        created_at=user.created_at,
    )


def to_visit_record(record: PatientRecord, doctor_name: Optional[str]) -> VisitRecordResponse:
    return VisitRecordResponse(
        id=record.id,
        patient_id=record.patient_id,
        doctor_id=record.doctor_id,
        doctor_name=doctor_name,
        visit_date=record.visit_date,
        diagnosis=record.diagnosis,
        notes=record.notes,
        created_at=record.created_at,
    )


async def list_patients(
    db: AsyncSession,
    actor: User,
    search: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> Tuple[List[PatientSummary], int]:
    """
    Patients visible to ``actor``.

    A patient only ever sees their own row; doctors and admins see every
    patient. ``search`` is a literal substring of name, email or phone,
    matched case-insensitively.
    """
    query = select(Patient, User).join(User, Patient.id == User.id)

    if actor.role == UserRole.PATIENT:
        authorize(actor, Action.LIST_PATIENTS, actor.id)
        query = query.where(Patient.id == actor.id)
    else:
        authorize(actor, Action.LIST_PATIENTS)

    if search:
        query = query.where(
            or_(
                User.name.icontains(search, autoescape=True),
                User.email.icontains(search, autoescape=True),
                User.phone.contains(search, autoescape=True),
            )
        )

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(User.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    patients = [to_summary(patient, user) for patient, user in result.all()]
    return patients, total or 0


async def upsert_patient_record(
    db: AsyncSession,
    actor: User,
    patient_id: UUID,
    date_of_birth: Optional[date] = None,
    gender: Optional[str] = None,
    blood_type: Optional[str] = None,
    emergency_contact: Optional[EmergencyContact] = None,
) -> bool:
    """Create or replace the clinical profile of a patient account. Returns True when a row was created."""
    authorize(actor, Action.WRITE_PATIENT, patient_id)

    result = await db.execute(select(User.role).where(User.id == patient_id))
    role = result.scalar_one_or_none()
    if role != UserRole.PATIENT:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)

    contact = emergency_contact.model_dump() if emergency_contact else None

    result = await db.execute(select(Patient).where(Patient.id == patient_id))
    patient = result.scalars().first()
    created = patient is None
    if created:
        patient = Patient(id=patient_id)
        db.add(patient)

    patient.date_of_birth = date_of_birth
    patient.gender = gender
    patient.blood_type = blood_type
    patient.emergency_contact = contact

    await db.commit()
    logger.info("patient_record_saved", patient_id=str(patient_id), created=created, by=str(actor.id))
    return created


async def get_patient_detail(db: AsyncSession, actor: User, patient_id: UUID) -> PatientDetail:
    """Patient profile with recent visits, active prescriptions, latest vitals and age."""
    authorize(actor, Action.READ_PATIENT, patient_id)

    result = await db.execute(
        select(Patient, User).join(User, Patient.id == User.id).where(Patient.id == patient_id)
    )
    row = result.first()
    if row is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)
    patient, user = row

    records_result = await db.execute(
        select(PatientRecord, User.name)
        .join(User, PatientRecord.doctor_id == User.id)
        .where(PatientRecord.patient_id == patient_id)
        .order_by(PatientRecord.visit_date.desc())
        .limit(RECENT_RECORDS_LIMIT)
    )
    records = [to_visit_record(record, doctor_name) for record, doctor_name in records_result.all()]

    prescriptions_result = await db.execute(
        select(Prescription, User.name)
        .join(User, Prescription.doctor_id == User.id)
        .where(
            Prescription.patient_id == patient_id,
            Prescription.status == PrescriptionStatus.ACTIVE,
        )
        .order_by(Prescription.created_at.desc())
    )
    medications = [
        CurrentMedication(
            prescription_id=prescription.id,
            medications=prescription.medications or [],
            doctor=doctor_name,
            created_at=prescription.created_at,
        )
        for prescription, doctor_name in prescriptions_result.all()
    ]

    vitals_result = await db.execute(
        select(Vital)
        .where(Vital.patient_id == patient_id)
        .order_by(Vital.recorded_at.desc())
        .limit(1)
    )
    vital = vitals_result.scalars().first()
    last_vitals = None
    if vital is not None:
        last_vitals = LatestVitals(
            recorded_at=vital.recorded_at,
            heart_rate=vital.heart_rate,
            blood_pressure=format_blood_pressure(vital.blood_pressure_systolic, vital.blood_pressure_diastolic),
            temperature=vital.temperature,
            oxygen_saturation=vital.oxygen_saturation,
            respiratory_rate=vital.respiratory_rate,
            weight=vital.weight,
        )

    summary = to_summary(patient, user)
    return PatientDetail(
        **summary.model_dump(),
        medical_history=records,
        current_medications=medications,
        last_vitals=last_vitals,
    )


async def add_visit_record(
    db: AsyncSession,
    actor: User,
    patient_id: UUID,
    diagnosis: Optional[str] = None,
    notes: Optional[str] = None,
    visit_date: Optional[datetime] = None,
    cache: Optional[CacheService] = None,
) -> VisitRecordResponse:
    """Append a visit to the patient's history, attributed to ``actor``."""
    authorize(actor, Action.ADD_VISIT_RECORD, patient_id)

    exists = await db.scalar(select(func.count(Patient.id)).where(Patient.id == patient_id))
    if not exists:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)

    record = PatientRecord(
        patient_id=patient_id,
        doctor_id=actor.id,
        visit_date=visit_date or datetime.now(timezone.utc),
        diagnosis=diagnosis,
        notes=notes,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)

    if cache is not None:
        await cache.delete(*stats_cache_keys(actor.id, patient_id))

    logger.info("visit_record_added", patient_id=str(patient_id), record_id=str(record.id), by=str(actor.id))
    return to_visit_record(record, actor.name)
