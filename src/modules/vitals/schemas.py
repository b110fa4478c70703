# Vitals Schemas

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class VitalReading(BaseModel):
    id: UUID
    recorded_at: datetime
    heart_rate: Optional[int] = None
    blood_pressure: Optional[str] = None
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    respiratory_rate: Optional[int] = None
    weight: Optional[float] = None


class VitalAverages(BaseModel):
    """Mean of the non-null readings per metric; null when a metric has no readings."""
    heart_rate: Optional[int] = None
    blood_pressure: Optional[str] = None
    temperature: Optional[float] = None
    oxygen_saturation: Optional[int] = None
    respiratory_rate: Optional[int] = None
    weight: Optional[float] = None


class VitalsResponse(BaseModel):
    success: bool = True
    patient_id: UUID
    vitals: List[VitalReading]
    averages: VitalAverages
    total: int


class RecordVitalsRequest(BaseModel):
    patient_id: Optional[UUID] = Field(default=None, alias="patientId")
    recorded_at: Optional[datetime] = Field(default=None, alias="recordedAt")
    heart_rate: Optional[int] = Field(default=None, ge=20, le=300, alias="heartRate")
    blood_pressure_systolic: Optional[int] = Field(default=None, ge=50, le=300, alias="bloodPressureSystolic")
    blood_pressure_diastolic: Optional[int] = Field(default=None, ge=20, le=200, alias="bloodPressureDiastolic")
    temperature: Optional[float] = Field(default=None, ge=25, le=45)
    oxygen_saturation: Optional[float] = Field(default=None, ge=50, le=100, alias="oxygenSaturation")
    respiratory_rate: Optional[int] = Field(default=None, ge=4, le=80, alias="respiratoryRate")
    weight: Optional[float] = Field(default=None, gt=0, le=700)

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_readings(self):
        if (self.blood_pressure_systolic is None) != (self.blood_pressure_diastolic is None):
            raise ValueError("Blood pressure needs both systolic and diastolic values")
        metrics = (
            self.heart_rate, self.blood_pressure_systolic, self.temperature,
            self.oxygen_saturation, self.respiratory_rate, self.weight,
        )
        if all(m is None for m in metrics):
            raise ValueError("At least one vital sign is required")
        return self


class RecordVitalsResponse(BaseModel):
    success: bool = True
    vital: VitalReading
