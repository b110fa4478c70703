# src/modules/stats/stats_service.py
"""Role-specific dashboard counts, cached briefly per user."""

from datetime import datetime, time, timezone
from typing import Dict, Optional, Tuple, Type, Union

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.access import Action, authorize
from src.common.cache import CacheService, stats_cache_keys
from src.common.config import settings
from src.common.utils.logger import get_logger
from src.models.models import (
    Doctor, MedicalReport, Patient, PatientRecord, Prescription, PrescriptionStatus,
    User, UserRole, Vital,
)

from .schemas import AdminStats, DoctorStats, PatientStats

logger = get_logger(__name__)

Stats = Union[AdminStats, DoctorStats, PatientStats]

STATS_MODELS: Dict[UserRole, Type[Stats]] = {
    UserRole.ADMIN: AdminStats,
    UserRole.DOCTOR: DoctorStats,
    UserRole.PATIENT: PatientStats,
}


def start_of_today(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


def describe_last_checkup(last_visit: Optional[datetime], now: Optional[datetime] = None) -> Tuple[str, Optional[int]]:
    if last_visit is None:
        return "No visits yet", None
    now = now or datetime.now(timezone.utc)
    if last_visit.tzinfo is None:
        last_visit = last_visit.replace(tzinfo=timezone.utc)
    days = max(0, (now - last_visit).days)
    return ("Today" if days == 0 else f"{days} days ago"), days


async def _count(db: AsyncSession, query) -> int:
    return (await db.scalar(query)) or 0


async def admin_stats(db: AsyncSession) -> AdminStats:
    return AdminStats(
        total_patients=await _count(db, select(func.count(Patient.id))),
        total_doctors=await _count(db, select(func.count(Doctor.id))),
        active_prescriptions=await _count(
            db, select(func.count(Prescription.id)).where(Prescription.status == PrescriptionStatus.ACTIVE)
        ),
        total_reports=await _count(db, select(func.count(MedicalReport.id))),
    )


async def doctor_stats(db: AsyncSession, doctor: User) -> DoctorStats:
    today = start_of_today()
    return DoctorStats(
        my_patients=await _count(
            db, select(func.count(distinct(PatientRecord.patient_id))).where(PatientRecord.doctor_id == doctor.id)
        ),
        visits_today=await _count(
            db,
            select(func.count(PatientRecord.id)).where(
                PatientRecord.doctor_id == doctor.id,
                PatientRecord.visit_date >= today,
            ),
        ),
        pending_reports=await _count(
            db,
            select(func.count(MedicalReport.id)).where(
                MedicalReport.doctor_id == doctor.id,
                MedicalReport.ai_analysis.is_(None),
            ),
        ),
        prescriptions_today=await _count(
            db,
            select(func.count(Prescription.id)).where(
                Prescription.doctor_id == doctor.id,
                Prescription.created_at >= today,
            ),
        ),
    )


async def patient_stats(db: AsyncSession, patient: User) -> PatientStats:
    last_visit = await db.scalar(
        select(func.max(PatientRecord.visit_date)).where(PatientRecord.patient_id == patient.id)
    )
    last_checkup, days = describe_last_checkup(last_visit)
    return PatientStats(
        my_reports=await _count(
            db, select(func.count(MedicalReport.id)).where(MedicalReport.patient_id == patient.id)
        ),
        active_prescriptions=await _count(
            db,
            select(func.count(Prescription.id)).where(
                Prescription.patient_id == patient.id,
                Prescription.status == PrescriptionStatus.ACTIVE,
            ),
        ),
        last_checkup=last_checkup,
        days_since_last_checkup=days,
        vitals_recorded=await _count(db, select(func.count(Vital.id)).where(Vital.patient_id == patient.id)),
    )


async def get_stats(db: AsyncSession, actor: User, cache: CacheService) -> Tuple[Stats, bool]:
    """Counts for the caller's dashboard. Returns the stats and whether they came from the cache."""
    authorize(actor, Action.READ_STATS, actor.id)

    key = stats_cache_keys(actor.id)[0]
    model = STATS_MODELS[actor.role]

    cached = await cache.get(key)
    if isinstance(cached, dict):
        try:
            return model.model_validate(cached), True
        except ValueError:
            logger.warning("stats_cache_stale", key=key)

    if actor.role == UserRole.ADMIN:
        stats = await admin_stats(db)
    elif actor.role == UserRole.DOCTOR:
        stats = await doctor_stats(db, actor)
    else:
        stats = await patient_stats(db, actor)

    await cache.set(key, stats.model_dump(), ttl_seconds=settings.STATS_CACHE_TTL_SECONDS)
    return stats, False
