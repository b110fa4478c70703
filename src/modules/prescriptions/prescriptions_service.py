# src/modules/prescriptions/prescriptions_service.py
"""Prescription listing, creation, status changes and AI medication suggestions."""

from typing import Dict, FrozenSet, List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.common.access import Action, authorize
from src.common.cache import CacheService, stats_cache_keys
from src.common.config import settings
from src.common.exceptions import NotFound, RateLimited, ValidationFailed
from src.common.llm import LLMService
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import (
    Notification, NotificationType, Patient, Prescription, PrescriptionStatus, User, UserRole,
)

from .schemas import Medication, PrescriptionResponse, SuggestedMedication

logger = get_logger(__name__)

LIST_LIMIT = 100

# Allowed status changes; nothing leaves COMPLETED
STATUS_TRANSITIONS: Dict[PrescriptionStatus, FrozenSet[PrescriptionStatus]] = {
    PrescriptionStatus.DRAFT: frozenset({PrescriptionStatus.ACTIVE}),
    PrescriptionStatus.ACTIVE: frozenset({PrescriptionStatus.COMPLETED}),
    PrescriptionStatus.COMPLETED: frozenset(),
}

PatientUser = aliased(User)
DoctorUser = aliased(User)


def can_transition(current: PrescriptionStatus, target: PrescriptionStatus) -> bool:
    return target in STATUS_TRANSITIONS[current]


def to_response(
    prescription: Prescription,
    patient_name: Optional[str] = None,
    doctor_name: Optional[str] = None,
) -> PrescriptionResponse:
    return PrescriptionResponse(
        id=prescription.id,
        patient_id=prescription.patient_id,
        patient_name=patient_name,
        doctor_id=prescription.doctor_id,
        doctor_name=doctor_name,
        medications=prescription.medications or [],
        status=prescription.status.value,
        ai_generated=prescription.ai_generated,
        notes=prescription.notes,
        created_at=prescription.created_at,
        updated_at=prescription.updated_at,
    )


def prescription_notice(actor: User, patient_id: UUID, medication_count: int) -> Notification:
    return Notification(
        user_id=patient_id,
        type=NotificationType.PRESCRIPTION,
        title="New Prescription Created",
        message=(
            f"Dr. {actor.name or 'Doctor'} has created a new prescription for you "
            f"with {medication_count} medication(s)."
        ),
        link="/dashboard/prescriptions",
    )


def _with_names():
    return (
        select(Prescription, PatientUser.name, DoctorUser.name)
        .join(PatientUser, Prescription.patient_id == PatientUser.id)
        .join(DoctorUser, Prescription.doctor_id == DoctorUser.id)
    )


async def list_prescriptions(
    db: AsyncSession,
    actor: User,
    patient_id: Optional[UUID] = None,
    status: Optional[PrescriptionStatus] = None,
) -> List[PrescriptionResponse]:
    """
    Prescriptions visible to ``actor``.

    - patient: their own, whatever ``patient_id`` says
    - doctor: the given patient's, otherwise the ones they wrote
    - admin: the given patient's, otherwise everyone's
    """
    query = _with_names()

    if actor.role == UserRole.PATIENT:
        authorize(actor, Action.READ_PRESCRIPTIONS, actor.id)
        query = query.where(Prescription.patient_id == actor.id)
    elif patient_id is not None:
        authorize(actor, Action.READ_PRESCRIPTIONS, patient_id)
        query = query.where(Prescription.patient_id == patient_id)
    else:
        authorize(actor, Action.READ_PRESCRIPTIONS)
        if actor.role == UserRole.DOCTOR:
            query = query.where(Prescription.doctor_id == actor.id)

    if status is not None:
        query = query.where(Prescription.status == status)

    query = query.order_by(Prescription.created_at.desc()).limit(LIST_LIMIT)
    result = await db.execute(query)
    return [to_response(p, patient_name, doctor_name) for p, patient_name, doctor_name in result.all()]


async def create_prescription(
    db: AsyncSession,
    actor: User,
    patient_id: UUID,
    medications: List[Medication],
    notes: Optional[str] = None,
    ai_generated: bool = False,
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE,
    cache: Optional[CacheService] = None,
) -> PrescriptionResponse:
    """
    Write a prescription and notify the patient.

    The prescription and the notification are committed together; if either
    insert fails neither is kept.
    """
    authorize(actor, Action.CREATE_PRESCRIPTION, patient_id)

    if not medications:
        raise ValidationFailed("At least one medication is required")
    if status == PrescriptionStatus.COMPLETED:
        raise ValidationFailed("A new prescription must be draft or active")

    result = await db.execute(
        select(PatientUser.name)
        .select_from(Patient)
        .join(PatientUser, Patient.id == PatientUser.id)
        .where(Patient.id == patient_id)
    )
    row = result.first()
    if row is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)
    patient_name = row[0]

    prescription = Prescription(
        patient_id=patient_id,
        doctor_id=actor.id,
        medications=[m.model_dump() for m in medications],
        status=status,
        ai_generated=ai_generated,
        notes=notes,
    )
    db.add(prescription)

    if status == PrescriptionStatus.ACTIVE:
        db.add(prescription_notice(actor, patient_id, len(medications)))

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("prescription_create_failed", patient_id=str(patient_id), by=str(actor.id))
        raise
    await db.refresh(prescription)

    if cache is not None:
        await cache.delete(*stats_cache_keys(actor.id, patient_id))

    logger.info("prescription_created", prescription_id=str(prescription.id), patient_id=str(patient_id), by=str(actor.id))
    return to_response(prescription, patient_name, actor.name)


async def update_prescription_status(
    db: AsyncSession,
    actor: User,
    prescription_id: UUID,
    target: PrescriptionStatus,
    cache: Optional[CacheService] = None,
) -> PrescriptionResponse:
    """Move a prescription along draft -> active -> completed."""
    authorize(actor, Action.UPDATE_PRESCRIPTION_STATUS)

    result = await db.execute(_with_names().where(Prescription.id == prescription_id))
    row = result.first()
    if row is None:
        raise NotFound(GlobalMessages.PRESCRIPTION_NOT_FOUND)
    prescription, patient_name, doctor_name = row

    current = prescription.status
    if not can_transition(current, target):
        raise ValidationFailed(f"Cannot change prescription status from {current.value} to {target.value}")

    prescription.status = target
    if target == PrescriptionStatus.ACTIVE:
        db.add(prescription_notice(actor, prescription.patient_id, len(prescription.medications or [])))
    await db.commit()
    await db.refresh(prescription)

    if cache is not None:
        await cache.delete(*stats_cache_keys(prescription.doctor_id, prescription.patient_id))

    logger.info(
        "prescription_status_changed",
        prescription_id=str(prescription.id),
        from_status=current.value,
        to_status=target.value,
        by=str(actor.id),
    )
    return to_response(prescription, patient_name, doctor_name)


async def suggest_medications(
    actor: User,
    llm: LLMService,
    cache: CacheService,
    symptoms: str,
    diagnosis: str,
    patient_history: Optional[str] = None,
) -> Tuple[List[SuggestedMedication], int]:
    """AI medication suggestions for a doctor to review. Rate limited per user."""
    authorize(actor, Action.SUGGEST_MEDICATIONS)

    limit = await cache.check_rate_limit(
        f"suggest:{actor.id}",
        settings.SUGGESTION_RATE_LIMIT,
        settings.SUGGESTION_RATE_WINDOW_SECONDS,
    )
    if not limit.allowed:
        raise RateLimited()

    raw = await llm.suggest_medications(symptoms, diagnosis, patient_history)

    suggestions = []
    for item in raw:
        try:
            suggestions.append(SuggestedMedication.model_validate(
                {key: str(value) for key, value in item.items() if value is not None}
            ))
        except ValidationError:
            logger.warning("suggestion_discarded", keys=sorted(item.keys()))

    logger.info("medications_suggested", count=len(suggestions), by=str(actor.id))
    return suggestions, limit.remaining
