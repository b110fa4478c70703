# src/models/models.py

import uuid
import enum

from sqlalchemy import (
    JSON, Boolean, Column, Date, Float, ForeignKey,
    Index, Integer, String, Text, DateTime, Uuid,
    Enum as SAEnum,
    false, func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship, backref

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Foreign keys onto users.id follow a re-keyed account (identity reconciliation)
USER_FK = dict(ondelete="CASCADE", onupdate="CASCADE")


# ============================================================================
# ENUMS
# ============================================================================

class UserRole(enum.Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


class PrescriptionStatus(enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


class ReportType(enum.Enum):
    LAB = "lab"
    IMAGING = "imaging"
    PATHOLOGY = "pathology"
    OTHER = "other"


class NotificationType(enum.Enum):
    PRESCRIPTION = "prescription"
    REPORT = "report"
    VITALS = "vitals"
    ACCOUNT = "account"
    SYSTEM = "system"


# ============================================================================
# USER MODELS
# ============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=True)
    phone = Column(String(30), nullable=True)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.PATIENT)
    # Created by staff under a temporary id; cleared once the identity provider links the account
    provisioned = Column(Boolean, default=False, nullable=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"


class Patient(Base):
    """Patient extension row; shares its primary key with the owning user."""
    __tablename__ = "patients"

    id = Column(Uuid(as_uuid=True), ForeignKey("users.id", **USER_FK), primary_key=True, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    blood_type = Column(String(5), nullable=True)
    emergency_contact = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationship
    user = relationship("User", backref=backref("patient", uselist=False, passive_deletes=True))

    def __repr__(self):
        return f"<Patient(id={self.id})>"


class Doctor(Base):
    """Doctor extension row; shares its primary key with the owning user."""
    __tablename__ = "doctors"

    id = Column(Uuid(as_uuid=True), ForeignKey("users.id", **USER_FK), primary_key=True, nullable=False)
    specialization = Column(String(100), nullable=True)
    license_number = Column(String(100), nullable=True)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationship
    user = relationship("User", backref=backref("doctor", uselist=False, passive_deletes=True))

    def __repr__(self):
        return f"<Doctor(id={self.id}, specialization={self.specialization})>"


# ============================================================================
# CLINICAL MODELS
# ============================================================================

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id", **USER_FK), nullable=False)
    doctor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", **USER_FK), nullable=False)
    medications = Column(JSONType, nullable=False, default=list)
    status = Column(SAEnum(PrescriptionStatus), nullable=False, default=PrescriptionStatus.ACTIVE)
    ai_generated = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_prescriptions_patient", "patient_id"),
        Index("idx_prescriptions_doctor", "doctor_id"),
    )

    def __repr__(self):
        return f"<Prescription(id={self.id}, status={self.status.value})>"


class MedicalReport(Base):
    __tablename__ = "medical_reports"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id", **USER_FK), nullable=False)
    doctor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", **USER_FK), nullable=False)
    report_type = Column(SAEnum(ReportType), nullable=False, default=ReportType.OTHER)
    file_url = Column(String(500), nullable=False)
    public_id = Column(String(255), nullable=False)
    file_format = Column(String(20), nullable=True)
    file_size = Column(Integer, nullable=True)
    ai_analysis = Column(JSONType, nullable=True)
    confidence_score = Column(Float, nullable=True)
    anomalies = Column(JSONType, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_medical_reports_patient", "patient_id"),
    )

    def __repr__(self):
        return f"<MedicalReport(id={self.id}, report_type={self.report_type.value})>"


class Vital(Base):
    """Append-only vital sign readings for a patient."""
    __tablename__ = "vitals"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id", **USER_FK), nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    heart_rate = Column(Integer, nullable=True)  # bpm
    blood_pressure_systolic = Column(Integer, nullable=True)  # mmHg
    blood_pressure_diastolic = Column(Integer, nullable=True)  # mmHg
    temperature = Column(Float, nullable=True)  # Celsius
    oxygen_saturation = Column(Float, nullable=True)  # SpO2 %
    respiratory_rate = Column(Integer, nullable=True)  # breaths/min
    weight = Column(Float, nullable=True)  # kg

    __table_args__ = (
        Index("idx_vitals_patient_recorded", "patient_id", "recorded_at"),
    )

    def __repr__(self):
        return f"<Vital(id={self.id}, patient_id={self.patient_id})>"


class PatientRecord(Base):
    """A visit entry in a patient's medical history."""
    __tablename__ = "patient_records"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id", **USER_FK), nullable=False)
    doctor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", **USER_FK), nullable=False)
    visit_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    diagnosis = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_patient_records_patient", "patient_id"),
    )

    def __repr__(self):
        return f"<PatientRecord(id={self.id}, patient_id={self.patient_id})>"


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", **USER_FK), nullable=False)
    type = Column(SAEnum(NotificationType), nullable=False, default=NotificationType.SYSTEM)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_notifications_user", "user_id"),
        Index("idx_notifications_unread", "user_id", "read"),
    )

    def __repr__(self):
        return f"<Notification(id={self.id}, title={self.title})>"
