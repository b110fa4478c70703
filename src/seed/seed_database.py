# src/seed/seed_database.py
"""
Database seed script for local development.
Creates admins, doctors, patients and their clinical data.

Accounts are created under temporary ids, exactly as if an admin had
provisioned them; signing up through the identity provider with one of the
seeded emails links the account.

Usage:
    python -m src.seed.seed_database

Options:
    --clear     Clear existing data before seeding
"""

import argparse
import asyncio
import random
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import List, Tuple

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import async_session
from src.models.models import (
    Doctor, MedicalReport, Notification, NotificationType, Patient, PatientRecord,
    Prescription, PrescriptionStatus, User, UserRole, Vital,
)


# ============================================================================
# SAMPLE DATA
# ============================================================================

FIRST_NAMES = [
    "Amara", "Daniel", "Fatima", "Grace", "Ibrahim",
    "Joy", "Kemi", "Liam", "Maya", "Noah",
]

LAST_NAMES = [
    "Adeyemi", "Brown", "Chen", "Diallo", "Evans",
    "Garcia", "Okafor", "Patel", "Silva", "Walker",
]

SPECIALTIES = [
    "General Practice",
    "Internal Medicine",
    "Cardiology",
    "Pediatrics",
    "Dermatology",
]

BLOOD_TYPES = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]

DIAGNOSES = [
    "Seasonal allergic rhinitis",
    "Essential hypertension, well controlled",
    "Type 2 diabetes mellitus follow-up",
    "Acute upper respiratory infection",
    "Iron deficiency anaemia",
    "Routine annual check-up",
]

MEDICATIONS = [
    {"name": "Amoxicillin", "dosage": "500mg", "frequency": "Three times daily", "duration": "7 days"},
    {"name": "Lisinopril", "dosage": "10mg", "frequency": "Once daily", "duration": "90 days"},
    {"name": "Metformin", "dosage": "500mg", "frequency": "Twice daily", "duration": "90 days"},
    {"name": "Cetirizine", "dosage": "10mg", "frequency": "Once daily", "duration": "30 days"},
    {"name": "Ferrous sulfate", "dosage": "325mg", "frequency": "Once daily", "duration": "60 days"},
]


# ============================================================================
# SEED FUNCTIONS
# ============================================================================

def _full_name(idx: int) -> str:
    return f"{FIRST_NAMES[idx % len(FIRST_NAMES)]} {LAST_NAMES[(idx * 3) % len(LAST_NAMES)]}"


async def create_admins(session: AsyncSession) -> List[User]:
    admins = []
    for name, email in [("Clinic Admin", "admin@example.com")]:
        admin = User(id=uuid.uuid4(), email=email, name=name, role=UserRole.ADMIN, provisioned=True)
        session.add(admin)
        admins.append(admin)

    await session.flush()
    print(f"✓ Created {len(admins)} admins")
    return admins


async def create_doctors(session: AsyncSession, count: int = 3) -> List[User]:
    doctors = []
    for idx in range(count):
        user = User(
            id=uuid.uuid4(),
            email=f"doctor{idx}@example.com",
            name=_full_name(idx),
            phone=f"+1 555 01{idx:02d}",
            role=UserRole.DOCTOR,
            provisioned=True,
        )
        session.add(user)
        doctors.append(user)
    await session.flush()

    for idx, user in enumerate(doctors):
        session.add(Doctor(
            id=user.id,
            specialization=SPECIALTIES[idx % len(SPECIALTIES)],
            license_number=f"LIC-{100000 + idx}",
            verified=True,
        ))

    await session.flush()
    print(f"✓ Created {len(doctors)} doctors")
    return doctors


async def create_patients(session: AsyncSession, count: int = 8) -> List[User]:
    patients = []
    for idx in range(count):
        user = User(
            id=uuid.uuid4(),
            email=f"patient{idx}@example.com",
            name=_full_name(idx + 5),
            phone=f"+1 555 02{idx:02d}",
            role=UserRole.PATIENT,
            provisioned=True,
        )
        session.add(user)
        patients.append(user)
    await session.flush()

    today = date.today()
    for user in patients:
        session.add(Patient(
            id=user.id,
            date_of_birth=today - timedelta(days=random.randint(18 * 365, 80 * 365)),
            gender=random.choice(["female", "male"]),
            blood_type=random.choice(BLOOD_TYPES),
            emergency_contact={
                "name": _full_name(random.randint(0, 9)),
                "phone": f"+1 555 09{random.randint(10, 99)}",
                "relationship": random.choice(["Spouse", "Parent", "Sibling", "Friend"]),
            },
        ))

    await session.flush()
    print(f"✓ Created {len(patients)} patients")
    return patients


async def create_clinical_data(
    session: AsyncSession,
    doctors: List[User],
    patients: List[User],
) -> Tuple[int, int, int]:
    now = datetime.now(timezone.utc)
    records = prescriptions = vitals = 0

    for patient in patients:
        doctor = random.choice(doctors)

        for visit in range(random.randint(1, 4)):
            session.add(PatientRecord(
                patient_id=patient.id,
                doctor_id=doctor.id,
                visit_date=now - timedelta(days=30 * visit + random.randint(0, 10)),
                diagnosis=random.choice(DIAGNOSES),
                notes="Patient advised to return if symptoms persist.",
            ))
            records += 1

        for status in random.sample(list(PrescriptionStatus), random.randint(1, 2)):
            session.add(Prescription(
                patient_id=patient.id,
                doctor_id=doctor.id,
                medications=random.sample(MEDICATIONS, random.randint(1, 3)),
                status=status,
                notes="Take with food.",
            ))
            prescriptions += 1

        for day in range(random.randint(5, 14)):
            session.add(Vital(
                patient_id=patient.id,
                recorded_at=now - timedelta(days=day),
                heart_rate=random.randint(58, 96),
                blood_pressure_systolic=random.randint(105, 140),
                blood_pressure_diastolic=random.randint(65, 90),
                temperature=round(random.uniform(36.2, 37.6), 1),
                oxygen_saturation=float(random.randint(94, 100)),
                respiratory_rate=random.randint(12, 20),
                weight=round(random.uniform(52, 95), 1),
            ))
            vitals += 1

        session.add(Notification(
            user_id=patient.id,
            type=NotificationType.SYSTEM,
            title="Welcome",
            message="Your health records are now available online.",
            link="/dashboard",
            read=random.choice([True, False]),
        ))

    await session.flush()
    print(f"✓ Created {records} visit records, {prescriptions} prescriptions, {vitals} vital readings")
    return records, prescriptions, vitals


async def clear_database(session: AsyncSession):
    """Clear all data from the database"""
    print("\n🗑️  Clearing existing data...")

    # Delete in reverse order of dependencies
    tables = [
        Notification, Vital, MedicalReport, Prescription, PatientRecord,
        Doctor, Patient, User,
    ]

    for table in tables:
        await session.execute(delete(table))

    await session.commit()
    print("✓ Database cleared")


async def seed_database(clear: bool = False):
    """Main seeding function"""
    print("\n" + "=" * 60)
    print("🌱 DATABASE SEEDER")
    print("=" * 60 + "\n")

    async with async_session() as session:
        try:
            if clear:
                await clear_database(session)

            print("📦 Creating seed data...\n")

            await create_admins(session)
            doctors = await create_doctors(session)
            patients = await create_patients(session)
            await create_clinical_data(session, doctors, patients)

            await session.commit()

            print("\n" + "=" * 60)
            print("✅ DATABASE SEEDING COMPLETE!")
            print("=" * 60)
            print("\n📋 Sign up with one of these emails to claim the account:")
            print("-" * 40)
            print("Admin:   admin@example.com")
            print("Doctor:  doctor0@example.com")
            print("Patient: patient0@example.com")
            print("-" * 40 + "\n")

        except Exception as e:
            await session.rollback()
            print(f"\n❌ Error during seeding: {e}")
            raise


def main():
    parser = argparse.ArgumentParser(description="Seed the database with development data")
    parser.add_argument("--clear", action="store_true", help="Clear existing data before seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(clear=args.clear))


if __name__ == "__main__":
    main()
