# Prescriptions Schemas

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class InitialStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"


class PrescriptionStatusEnum(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


class Medication(BaseModel):
    """One prescribed medication. Every field is required and must be non-blank."""
    name: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    duration: str = Field(..., min_length=1, max_length=100)

    class Config:
        str_strip_whitespace = True


class CreatePrescriptionRequest(BaseModel):
    patient_id: UUID = Field(..., alias="patientId")
    medications: List[Medication] = Field(..., min_length=1)
    notes: Optional[str] = None
    ai_generated: bool = Field(default=False, alias="aiGenerated")
    status: InitialStatus = InitialStatus.ACTIVE

    class Config:
        populate_by_name = True


class UpdateStatusRequest(BaseModel):
    status: PrescriptionStatusEnum


class PrescriptionResponse(BaseModel):
    id: UUID
    patient_id: UUID
    patient_name: Optional[str] = None
    doctor_id: UUID
    doctor_name: Optional[str] = None
    medications: List[Medication]
    status: PrescriptionStatusEnum
    ai_generated: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PrescriptionsListResponse(BaseModel):
    success: bool = True
    prescriptions: List[PrescriptionResponse]
    total: int


class PrescriptionEnvelope(BaseModel):
    success: bool = True
    prescription: PrescriptionResponse


class SuggestMedicationsRequest(BaseModel):
    symptoms: str = Field(..., min_length=1, max_length=2000)
    diagnosis: str = Field(..., min_length=1, max_length=500)
    patient_history: Optional[str] = Field(default=None, max_length=4000, alias="patientHistory")

    class Config:
        populate_by_name = True


class SuggestedMedication(BaseModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    reason: Optional[str] = None


class SuggestMedicationsResponse(BaseModel):
    success: bool = True
    suggestions: List[SuggestedMedication]
    remaining: int
