# src/modules/reports/reports_service.py
"""Medical report uploads, listing, signed downloads and AI analysis."""

import time
import uuid
from typing import Any, List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.access import Action, authorize
from src.common.cache import CacheService, stats_cache_keys
from src.common.exceptions import NotFound, ValidationFailed
from src.common.llm import LLMService
from src.common.storage import StorageService
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import (
    MedicalReport, Notification, NotificationType, Patient, ReportType, User, UserRole,
)

from .schemas import ReportAnalysis, ReportSummary

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({"application/pdf", "image/jpeg", "image/jpg", "image/png"})
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DOWNLOAD_URL_EXPIRY_SECONDS = 3600
LIST_LIMIT = 100


def anomalies_of(report: MedicalReport) -> List[Any]:
    if not report.anomalies:
        return []
    if isinstance(report.anomalies, list):
        return report.anomalies
    return [report.anomalies]


def report_status(report: MedicalReport) -> str:
    """Pending until analyzed; Analyzed when the analysis found anomalies, Normal otherwise."""
    if not report.ai_analysis:
        return "Pending"
    return "Analyzed" if anomalies_of(report) else "Normal"


def to_summary(report: MedicalReport, patient_name: Optional[str]) -> ReportSummary:
    return ReportSummary(
        id=report.id,
        patient_id=report.patient_id,
        patient_name=patient_name,
        doctor_id=report.doctor_id,
        report_type=report.report_type.value,
        file_format=report.file_format,
        file_size=report.file_size,
        uploaded_at=report.uploaded_at,
        ai_analyzed=bool(report.ai_analysis),
        anomalies=len(anomalies_of(report)),
        confidence=report.confidence_score,
        status=report_status(report),
    )


async def list_reports(
    db: AsyncSession,
    actor: User,
    patient_id: Optional[UUID] = None,
    report_type: Optional[ReportType] = None,
) -> List[ReportSummary]:
    """
    Reports visible to ``actor``.

    - patient: their own
    - doctor: the given patient's, otherwise the ones they uploaded
    - admin: the given patient's, otherwise everyone's
    """
    query = select(MedicalReport, User.name).join(User, MedicalReport.patient_id == User.id)

    if actor.role == UserRole.PATIENT:
        authorize(actor, Action.READ_REPORTS, actor.id)
        query = query.where(MedicalReport.patient_id == actor.id)
    elif patient_id is not None:
        authorize(actor, Action.READ_REPORTS, patient_id)
        query = query.where(MedicalReport.patient_id == patient_id)
    else:
        authorize(actor, Action.READ_REPORTS)
        if actor.role == UserRole.DOCTOR:
            query = query.where(MedicalReport.doctor_id == actor.id)

    if report_type is not None:
        query = query.where(MedicalReport.report_type == report_type)

    query = query.order_by(MedicalReport.uploaded_at.desc()).limit(LIST_LIMIT)
    result = await db.execute(query)
    return [to_summary(report, patient_name) for report, patient_name in result.all()]


async def read_upload(file: UploadFile) -> bytes:
    """Check the declared type and size of an upload and return its bytes."""
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailed(GlobalMessages.INVALID_FILE_TYPE)
    if file.size is not None and file.size > MAX_FILE_SIZE:
        raise ValidationFailed(GlobalMessages.FILE_TOO_LARGE)

    # Read one byte past the limit so an undeclared size is still caught
    data = await file.read(MAX_FILE_SIZE + 1)
    if len(data) > MAX_FILE_SIZE:
        raise ValidationFailed(GlobalMessages.FILE_TOO_LARGE)
    if not data:
        raise ValidationFailed(GlobalMessages.EMPTY_FILE)
    return data


async def upload_report(
    db: AsyncSession,
    actor: User,
    storage: StorageService,
    file: UploadFile,
    patient_id: UUID,
    report_type: ReportType,
    cache: Optional[CacheService] = None,
) -> MedicalReport:
    """
    Store a report file and record it against the patient.

    Authorization, type and size checks all happen before anything is sent
    to storage. If the database insert fails the stored file is removed.
    """
    authorize(actor, Action.UPLOAD_REPORT, patient_id)
    data = await read_upload(file)

    exists = await db.scalar(select(Patient.id).where(Patient.id == patient_id))
    if exists is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)

    public_id = f"report_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
    stored = await storage.upload(
        data,
        filename=file.filename or public_id,
        content_type=file.content_type,
        folder=f"medical_reports/{patient_id}",
        public_id=public_id,
        tags=[f"patient_{patient_id}", report_type.value, "medical_report"],
    )

    report = MedicalReport(
        patient_id=patient_id,
        doctor_id=actor.id,
        report_type=report_type,
        file_url=stored.secure_url,
        public_id=stored.public_id,
        file_format=stored.format,
        file_size=stored.bytes,
    )
    db.add(report)
    db.add(Notification(
        user_id=patient_id,
        type=NotificationType.REPORT,
        title="New Medical Report",
        message=f"A new {report_type.value} report has been added to your records.",
        link="/dashboard/reports",
    ))

    try:
        await db.commit()
    except SQLAlchemyError:
        logger.exception("report_insert_failed", public_id=stored.public_id, patient_id=str(patient_id))
        try:
            await db.rollback()
        finally:
            # The insert error is the one the caller sees
            try:
                await storage.delete(stored.public_id)
            except Exception:
                logger.exception("report_cleanup_failed", public_id=stored.public_id)
        raise
    await db.refresh(report)

    if cache is not None:
        await cache.delete(*stats_cache_keys(actor.id, patient_id))

    logger.info("report_uploaded", report_id=str(report.id), patient_id=str(patient_id), size=stored.bytes)
    return report


async def get_report(db: AsyncSession, report_id: UUID) -> MedicalReport:
    result = await db.execute(select(MedicalReport).where(MedicalReport.id == report_id))
    report = result.scalars().first()
    if report is None:
        raise NotFound(GlobalMessages.REPORT_NOT_FOUND)
    return report


async def get_download_url(
    db: AsyncSession,
    actor: User,
    storage: StorageService,
    report_id: UUID,
) -> Tuple[str, int]:
    """A signed download URL for the report file, valid for one hour."""
    report = await get_report(db, report_id)
    authorize(actor, Action.DOWNLOAD_REPORT, report.patient_id)

    url = storage.signed_download_url(
        report.public_id,
        file_format=report.file_format if report.file_format != "unknown" else None,
        expires_in=DOWNLOAD_URL_EXPIRY_SECONDS,
    )
    return url, DOWNLOAD_URL_EXPIRY_SECONDS


async def analyze_report(
    db: AsyncSession,
    actor: User,
    llm: LLMService,
    report_id: UUID,
    report_text: str,
    cache: Optional[CacheService] = None,
) -> Tuple[MedicalReport, ReportAnalysis]:
    """Run the LLM over the report's extracted text and keep the result on the report."""
    authorize(actor, Action.ANALYZE_REPORT)
    report = await get_report(db, report_id)

    raw = await llm.analyze_report(report_text, report.report_type.value)
    analysis = ReportAnalysis(
        summary=str(raw.get("summary")) if raw.get("summary") is not None else None,
        findings=_as_list(raw.get("findings")),
        abnormalities=_as_list(raw.get("abnormalities")),
        recommendations=_as_list(raw.get("recommendations")),
        confidence=_as_confidence(raw.get("confidence")),
    )

    report.ai_analysis = analysis.model_dump()
    report.confidence_score = analysis.confidence
    report.anomalies = analysis.abnormalities
    db.add(Notification(
        user_id=report.patient_id,
        type=NotificationType.REPORT,
        title="Report Analysis Ready",
        message=f"The analysis of your {report.report_type.value} report is available.",
        link="/dashboard/reports",
    ))
    await db.commit()
    await db.refresh(report)

    if cache is not None:
        await cache.delete(*stats_cache_keys(report.doctor_id, report.patient_id))

    logger.info("report_analyzed", report_id=str(report.id), anomalies=len(analysis.abnormalities))
    return report, analysis


def _as_list(value: Any) -> List[Any]:
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_confidence(value: Any) -> Optional[float]:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    return min(max(confidence, 0.0), 1.0)
