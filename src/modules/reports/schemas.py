# Reports Schemas

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ReportTypeEnum(str, Enum):
    LAB = "lab"
    IMAGING = "imaging"
    PATHOLOGY = "pathology"
    OTHER = "other"


class ReportSummary(BaseModel):
    id: UUID
    patient_id: UUID
    patient_name: Optional[str] = None
    doctor_id: UUID
    report_type: ReportTypeEnum
    file_format: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    ai_analyzed: bool
    anomalies: int
    confidence: Optional[float] = None
    status: str


class ReportsListResponse(BaseModel):
    success: bool = True
    reports: List[ReportSummary]
    total: int


class UploadedReport(BaseModel):
    id: UUID
    public_id: str
    file_url: str
    report_type: ReportTypeEnum
    uploaded_at: Optional[datetime] = None


class UploadReportResponse(BaseModel):
    success: bool = True
    report: UploadedReport


class DownloadResponse(BaseModel):
    success: bool = True
    download_url: str
    expires_in: int


class AnalyzeReportRequest(BaseModel):
    report_text: str = Field(..., min_length=1, max_length=50000, alias="reportText")

    class Config:
        populate_by_name = True


class ReportAnalysis(BaseModel):
    summary: Optional[str] = None
    findings: List[Any] = []
    abnormalities: List[Any] = []
    recommendations: List[Any] = []
    confidence: Optional[float] = None


class AnalyzeReportResponse(BaseModel):
    success: bool = True
    report_id: UUID
    analysis: ReportAnalysis
    status: str
