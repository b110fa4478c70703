import uuid
from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from src.auth import auth_service
from src.auth.auth_service import create_session_token, decode_session_token
from src.common.config import settings
from src.common.database.database import async_session
from src.models.models import (
    Notification, Patient, Prescription, PrescriptionStatus, User, UserRole, Vital,
)
from src.modules.users import users_service
from tests.conftest import SYNC_SECRET, auth_headers, count_rows, fetch_one, make_user

SYNC_HEADERS = {"X-Auth-Sync-Secret": SYNC_SECRET}


def test_session_token_round_trip():
    user_id = uuid.uuid4()
    assert decode_session_token(create_session_token(user_id)) == user_id


def test_expired_or_forged_token_is_rejected():
    user_id = uuid.uuid4()
    assert decode_session_token(create_session_token(user_id, expires_delta=timedelta(seconds=-5))) is None
    assert decode_session_token("not-a-token") is None


async def test_api_without_credentials_is_rejected(client):
    response = await client.get("/api/patients")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


async def test_unknown_session_user_is_rejected(client):
    headers = {"Authorization": f"Bearer {create_session_token(uuid.uuid4())}"}
    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401


async def test_health_needs_no_session(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_sync_creates_user_and_sets_cookie(client):
    user_id = uuid.uuid4()
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(user_id), "email": "new.patient@example.com", "name": "New Patient"},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["reconciled"] is False
    assert body["user"]["id"] == str(user_id)
    assert body["user"]["role"] == "patient"
    assert settings.SESSION_COOKIE_NAME in response.cookies
    assert await count_rows(Patient, Patient.id == user_id) == 1

    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "new.patient@example.com"


async def test_sync_rejects_admin_role(client):
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(uuid.uuid4()), "email": "sneaky@example.com", "role": "admin"},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 400
    assert await count_rows(User) == 0


async def test_sync_requires_the_shared_secret(client):
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(uuid.uuid4()), "email": "someone@example.com"},
        headers={"X-Auth-Sync-Secret": "wrong"},
    )
    assert response.status_code == 401
    assert await count_rows(User) == 0


async def test_sync_is_refused_when_no_secret_is_configured(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_SYNC_SECRET", None)
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(uuid.uuid4()), "email": admin.email},
        headers={"X-Auth-Sync-Secret": ""},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "User sync is not configured"}
    assert settings.SESSION_COOKIE_NAME not in response.cookies
    assert await fetch_one(User, User.id == admin.id) is not None
    assert await count_rows(User) == 1


async def test_sync_is_idempotent_and_updates_name(client):
    user_id = uuid.uuid4()
    payload = {"id": str(user_id), "email": "repeat@example.com", "name": "First"}
    await client.post("/api/auth/sync-user", json=payload, headers=SYNC_HEADERS)
    payload["name"] = "Second"
    response = await client.post("/api/auth/sync-user", json=payload, headers=SYNC_HEADERS)

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Second"
    assert await count_rows(User) == 1


async def test_sync_reconciles_provisioned_account(client, doctor):
    provisioned = await client.post(
        "/api/auth/create-patient",
        json={"name": "Rita Provisioned", "email": "rita@example.com", "password": "longenough"},
        headers=auth_headers(doctor),
    )
    assert provisioned.status_code == 201
    temporary_id = uuid.UUID(provisioned.json()["user"]["id"])

    created = await client.post(
        "/api/prescriptions",
        json={
            "patientId": str(temporary_id),
            "medications": [{"name": "Ibuprofen", "dosage": "200mg", "frequency": "Twice daily", "duration": "5 days"}],
        },
        headers=auth_headers(doctor),
    )
    assert created.status_code == 201
    vitals = await client.post(
        "/api/vitals",
        json={"patientId": str(temporary_id), "heartRate": 72},
        headers=auth_headers(doctor),
    )
    assert vitals.status_code == 201

    real_id = uuid.uuid4()
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(real_id), "email": "rita@example.com", "name": "Rita R.", "role": "doctor"},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["reconciled"] is True
    assert body["user"]["id"] == str(real_id)
    # The provisioned role wins over the one picked at sign-up
    assert body["user"]["role"] == "patient"

    assert await fetch_one(User, User.id == temporary_id) is None
    assert await count_rows(User, User.email == "rita@example.com") == 1
    assert await count_rows(Patient, Patient.id == real_id) == 1
    assert await count_rows(Patient, Patient.id == temporary_id) == 0
    assert await count_rows(Prescription, Prescription.patient_id == real_id) == 1
    assert await count_rows(Prescription, Prescription.patient_id == temporary_id) == 0
    assert await count_rows(Vital, Vital.patient_id == real_id) == 1
    assert await count_rows(Notification, Notification.user_id == temporary_id) == 0
    assert await count_rows(Notification, Notification.user_id == real_id) >= 1

    prescription = await fetch_one(Prescription, Prescription.patient_id == real_id)
    assert prescription.status == PrescriptionStatus.ACTIVE


async def test_sync_refuses_to_link_an_id_already_in_use(client):
    provisioned = await make_user(UserRole.PATIENT, email="taken@example.com", provisioned=True)
    existing = await make_user(UserRole.PATIENT, email="other@example.com")

    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(existing.id), "email": "taken@example.com"},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 400
    assert await fetch_one(User, User.id == provisioned.id) is not None


async def test_create_patient_rejects_short_password(client, doctor):
    response = await client.post(
        "/api/auth/create-patient",
        json={"name": "Short", "email": "short@example.com", "password": "1234567"},
        headers=auth_headers(doctor),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Password must be at least 8 characters long"
    assert await count_rows(User, User.email == "short@example.com") == 0


async def test_create_patient_rejects_duplicate_email(client, doctor, patient):
    response = await client.post(
        "/api/auth/create-patient",
        json={"name": "Dup", "email": patient.email, "password": "password123"},
        headers=auth_headers(doctor),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "User with this email already exists"


async def test_patient_cannot_provision_patients(client, patient):
    response = await client.post(
        "/api/auth/create-patient",
        json={"name": "Friend", "email": "friend@example.com", "password": "password123"},
        headers=auth_headers(patient),
    )
    assert response.status_code == 403
    assert await count_rows(User, User.email == "friend@example.com") == 0


async def test_logout_clears_cookie(client):
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logout successful."
    assert settings.SESSION_COOKIE_NAME in response.headers.get("set-cookie", "")


async def test_sync_does_not_move_an_account_already_linked(client, admin):
    linked_id = uuid.uuid4()
    first = await client.post(
        "/api/auth/sync-user",
        json={"id": str(linked_id), "email": "linked@example.com", "name": "Linked"},
        headers=SYNC_HEADERS,
    )
    assert first.status_code == 200

    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(uuid.uuid4()), "email": "linked@example.com"},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 400
    assert settings.SESSION_COOKIE_NAME not in response.cookies
    assert await count_rows(User, User.email == "linked@example.com") == 1
    assert await fetch_one(User, User.id == linked_id) is not None
    assert await count_rows(Patient, Patient.id == linked_id) == 1


async def test_sync_does_not_take_over_a_directly_created_account(client, admin):
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(uuid.uuid4()), "email": admin.email},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 400
    assert await fetch_one(User, User.id == admin.id) is not None


async def test_reconciled_account_can_no_longer_be_claimed(client, admin):
    created = await client.post(
        "/api/users/create",
        json={"email": "claimed@example.com", "name": "Claimed", "role": "doctor"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    temporary_id = uuid.UUID(created.json()["user"]["id"])
    pending = await fetch_one(User, User.id == temporary_id)
    assert pending.provisioned is True

    real_id = uuid.uuid4()
    response = await client.post(
        "/api/auth/sync-user",
        json={"id": str(real_id), "email": "claimed@example.com"},
        headers=SYNC_HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["reconciled"] is True
    linked = await fetch_one(User, User.id == real_id)
    assert linked.provisioned is False

    again = await client.post(
        "/api/auth/sync-user",
        json={"id": str(uuid.uuid4()), "email": "claimed@example.com"},
        headers=SYNC_HEADERS,
    )
    assert again.status_code == 400
    assert await fetch_one(User, User.id == real_id) is not None


async def test_failed_reconciliation_leaves_provisioned_account_intact(db_engine, monkeypatch):
    async with async_session() as session:
        provisioned = await users_service.provision_account(
            session, email="halfway@example.com", name="Half Way", role=UserRole.PATIENT,
        )
        temporary_id = provisioned.id

    async def rekey_then_fail(db, old_id, new_id):
        await db.execute(
            update(User)
            .where(User.id == old_id)
            .values(id=new_id)
            .execution_options(synchronize_session=False)
        )
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(auth_service, "rekey_user", rekey_then_fail)

    real_id = uuid.uuid4()
    async with async_session() as session:
        with pytest.raises(SQLAlchemyError):
            await auth_service.sync_user(session, real_id, "halfway@example.com")

    assert await fetch_one(User, User.id == temporary_id) is not None
    assert await fetch_one(User, User.id == real_id) is None
    assert await count_rows(Patient, Patient.id == temporary_id) == 1
