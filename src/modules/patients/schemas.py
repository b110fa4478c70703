# Patients Schemas

from datetime import date, datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class EmergencyContact(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None


class PatientSummary(BaseModel):
    id: UUID
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_type: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None
    age: Optional[int] = None
    created_at: Optional[datetime] = None


class PatientsListResponse(BaseModel):
    success: bool = True
    patients: List[PatientSummary]
    total: int


class UpsertPatientRequest(BaseModel):
    id: UUID
    date_of_birth: Optional[date] = Field(default=None, alias="dateOfBirth")
    gender: Optional[str] = Field(default=None, max_length=20)
    blood_type: Optional[str] = Field(default=None, max_length=5, alias="bloodType")
    emergency_contact: Optional[EmergencyContact] = Field(default=None, alias="emergencyContact")

    class Config:
        populate_by_name = True


class UpsertPatientResponse(BaseModel):
    success: bool = True
    created: bool
    message: str


class VisitRecordResponse(BaseModel):
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    doctor_name: Optional[str] = None
    visit_date: datetime
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class CurrentMedication(BaseModel):
    prescription_id: UUID
    medications: List[Any]
    doctor: Optional[str] = None
    created_at: Optional[datetime] = None


class LatestVitals(BaseModel):
    recorded_at: datetime
    heart_rate: Optional[int] = None
    blood_pressure: Optional[str] = None
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    respiratory_rate: Optional[int] = None
    weight: Optional[float] = None


class PatientDetail(PatientSummary):
    medical_history: List[VisitRecordResponse]
    current_medications: List[CurrentMedication]
    last_vitals: Optional[LatestVitals] = None


class PatientDetailResponse(BaseModel):
    success: bool = True
    patient: PatientDetail


class CreateVisitRecordRequest(BaseModel):
    visit_date: Optional[datetime] = Field(default=None, alias="visitDate")
    diagnosis: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class CreateVisitRecordResponse(BaseModel):
    success: bool = True
    record: VisitRecordResponse
