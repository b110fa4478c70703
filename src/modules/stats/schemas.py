# Stats Schemas

from typing import Optional, Union

from pydantic import BaseModel

from src.models.models import UserRole


class AdminStats(BaseModel):
    total_patients: int
    total_doctors: int
    active_prescriptions: int
    total_reports: int


class DoctorStats(BaseModel):
    my_patients: int
    visits_today: int
    pending_reports: int
    prescriptions_today: int


class PatientStats(BaseModel):
    my_reports: int
    active_prescriptions: int
    last_checkup: str
    days_since_last_checkup: Optional[int] = None
    vitals_recorded: int


class StatsResponse(BaseModel):
    success: bool = True
    role: UserRole
    cached: bool = False
    stats: Union[AdminStats, DoctorStats, PatientStats]
