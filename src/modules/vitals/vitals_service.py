# src/modules/vitals/vitals_service.py
"""Vital sign readings and their per-metric averages."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.access import Action, authorize
from src.common.cache import CacheService, stats_cache_keys
from src.common.exceptions import NotFound, ValidationFailed
from src.common.utils.global_functions import (
    average_blood_pressure, format_blood_pressure, mean_of, round_or_none,
)
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import Notification, NotificationType, Patient, User, UserRole, Vital

from .schemas import RecordVitalsRequest, VitalAverages, VitalReading

logger = get_logger(__name__)

DEFAULT_LIMIT = 30


def to_reading(vital: Vital) -> VitalReading:
    return VitalReading(
        id=vital.id,
        recorded_at=vital.recorded_at,
        heart_rate=vital.heart_rate,
        blood_pressure=format_blood_pressure(vital.blood_pressure_systolic, vital.blood_pressure_diastolic),
        temperature=vital.temperature,
        oxygen_saturation=vital.oxygen_saturation,
        respiratory_rate=vital.respiratory_rate,
        weight=vital.weight,
    )


def compute_averages(readings: List[VitalReading]) -> VitalAverages:
    """Average each metric over the readings that have it."""
    return VitalAverages(
        heart_rate=round_or_none(mean_of(r.heart_rate for r in readings)),
        blood_pressure=average_blood_pressure([r.blood_pressure for r in readings]),
        temperature=round_or_none(mean_of(r.temperature for r in readings), 1),
        oxygen_saturation=round_or_none(mean_of(r.oxygen_saturation for r in readings)),
        respiratory_rate=round_or_none(mean_of(r.respiratory_rate for r in readings)),
        weight=round_or_none(mean_of(r.weight for r in readings), 1),
    )


def resolve_patient_id(actor: User, patient_id: Optional[UUID]) -> UUID:
    """Patients default to themselves; doctors and admins must say whose vitals they mean."""
    if patient_id is not None:
        return patient_id
    if actor.role == UserRole.PATIENT:
        return actor.id
    raise ValidationFailed(GlobalMessages.PATIENT_ID_REQUIRED)


async def get_vitals(
    db: AsyncSession,
    actor: User,
    patient_id: Optional[UUID] = None,
    limit: int = DEFAULT_LIMIT,
) -> Tuple[UUID, List[VitalReading], VitalAverages]:
    """The latest ``limit`` readings for a patient, newest first, with averages over them."""
    patient_id = resolve_patient_id(actor, patient_id)
    authorize(actor, Action.READ_VITALS, patient_id)

    result = await db.execute(
        select(Vital)
        .where(Vital.patient_id == patient_id)
        .order_by(Vital.recorded_at.desc())
        .limit(limit)
    )
    readings = [to_reading(v) for v in result.scalars().all()]
    return patient_id, readings, compute_averages(readings)


async def record_vitals(
    db: AsyncSession,
    actor: User,
    reading: RecordVitalsRequest,
    cache: Optional[CacheService] = None,
) -> VitalReading:
    """Append a reading. Patients record their own; doctors and admins record for anyone."""
    patient_id = resolve_patient_id(actor, reading.patient_id)
    authorize(actor, Action.RECORD_VITALS, patient_id)

    exists = await db.scalar(select(Patient.id).where(Patient.id == patient_id))
    if exists is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)

    vital = Vital(
        patient_id=patient_id,
        recorded_at=reading.recorded_at or datetime.now(timezone.utc),
        heart_rate=reading.heart_rate,
        blood_pressure_systolic=reading.blood_pressure_systolic,
        blood_pressure_diastolic=reading.blood_pressure_diastolic,
        temperature=reading.temperature,
        oxygen_saturation=reading.oxygen_saturation,
        respiratory_rate=reading.respiratory_rate,
        weight=reading.weight,
    )
    db.add(vital)

    if actor.id != patient_id:
        db.add(Notification(
            user_id=patient_id,
            type=NotificationType.VITALS,
            title="Vitals Recorded",
            message=f"{actor.name or 'Your care team'} recorded new vital signs for you.",
            link="/dashboard/vitals",
        ))

    await db.commit()
    await db.refresh(vital)

    if cache is not None:
        await cache.delete(*stats_cache_keys(patient_id))

    logger.info("vitals_recorded", vital_id=str(vital.id), patient_id=str(patient_id), by=str(actor.id))
    return to_reading(vital)
