# Reports Controller

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.cache import CacheService
from src.common.database.database import get_db_session
from src.common.dependencies import get_cache, get_llm, get_storage
from src.common.llm import LLMService
from src.common.storage import StorageService
from src.models.models import ReportType, User

from . import reports_service as service
from .schemas import (
    AnalyzeReportRequest, AnalyzeReportResponse, DownloadResponse, ReportsListResponse,
    ReportTypeEnum, UploadedReport, UploadReportResponse,
)


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/list", response_model=ReportsListResponse)
async def list_reports(
    patient_id: Optional[UUID] = Query(default=None, alias="patientId"),
    report_type: Optional[ReportTypeEnum] = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """List reports visible to the caller with their analysis status."""
    type_filter = ReportType(report_type.value) if report_type else None
    reports = await service.list_reports(db, current_user, patient_id, type_filter)
    return ReportsListResponse(reports=reports, total=len(reports))


@router.post("/upload", response_model=UploadReportResponse, status_code=status.HTTP_201_CREATED)
async def upload_report(
    file: UploadFile = File(...),
    patient_id: UUID = Form(..., alias="patientId"),
    report_type: ReportTypeEnum = Form(..., alias="reportType"),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
    cache: CacheService = Depends(get_cache),
):
    """
    Upload a medical report (doctor/admin).

    - **file**: PDF, JPG or PNG, at most 10MB
    - **patientId**: the patient the report belongs to
    - **reportType**: lab, imaging, pathology or other
    """
    report = await service.upload_report(
        db,
        current_user,
        storage,
        file,
        patient_id,
        ReportType(report_type.value),
        cache=cache,
    )
    return UploadReportResponse(
        report=UploadedReport(
            id=report.id,
            public_id=report.public_id,
            file_url=report.file_url,
            report_type=report.report_type.value,
            uploaded_at=report.uploaded_at,
        )
    )


@router.get("/{report_id}/download", response_model=DownloadResponse)
async def download_report(
    report_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Signed download URL, valid for one hour."""
    url, expires_in = await service.get_download_url(db, current_user, storage, report_id)
    return DownloadResponse(download_url=url, expires_in=expires_in)


@router.post("/{report_id}/analyze", response_model=AnalyzeReportResponse)
async def analyze_report(
    report_id: UUID,
    request: AnalyzeReportRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
    llm: LLMService = Depends(get_llm),
    cache: CacheService = Depends(get_cache),
):
    """AI analysis of the report's extracted text (doctor/admin)."""
    report, analysis = await service.analyze_report(
        db, current_user, llm, report_id, request.report_text, cache=cache
    )
    return AnalyzeReportResponse(report_id=report.id, analysis=analysis, status=service.report_status(report))
