import uuid

from src.models.models import Notification, NotificationType, Prescription, PrescriptionStatus
from tests.conftest import auth_headers, count_rows, fetch_one

AMOXICILLIN = {"name": "Amoxicillin", "dosage": "500mg", "frequency": "Three times daily", "duration": "7 days"}


async def create(client, actor, patient, **overrides):
    payload = {"patientId": str(patient.id), "medications": [AMOXICILLIN]}
    payload.update(overrides)
    return await client.post("/api/prescriptions", json=payload, headers=auth_headers(actor))


async def test_doctor_creates_prescription_and_patient_is_notified(client, doctor, patient, fake_cache):
    response = await create(client, doctor, patient, notes="Take with food")
    assert response.status_code == 201
    prescription = response.json()["prescription"]
    assert prescription["status"] == "active"
    assert prescription["doctor_id"] == str(doctor.id)
    assert prescription["patient_name"] == "Pat Patient"
    assert prescription["medications"] == [AMOXICILLIN]

    notice = await fetch_one(Notification, Notification.user_id == patient.id)
    assert notice.type == NotificationType.PRESCRIPTION
    assert "Dr. Meredith Grey" in notice.message
    assert f"stats:{patient.id}" in fake_cache.deleted


async def test_draft_prescription_sends_no_notification(client, doctor, patient):
    response = await create(client, doctor, patient, status="draft")
    assert response.status_code == 201
    assert response.json()["prescription"]["status"] == "draft"
    assert await count_rows(Notification) == 0


async def test_incomplete_medication_is_rejected_without_writes(client, doctor, patient):
    incomplete = {"name": "Ibuprofen", "dosage": "200mg", "frequency": "Twice daily"}
    response = await create(client, doctor, patient, medications=[AMOXICILLIN, incomplete])
    assert response.status_code == 400
    assert "duration" in response.json()["error"]
    assert await count_rows(Prescription) == 0
    assert await count_rows(Notification) == 0


async def test_blank_medication_field_is_rejected(client, doctor, patient):
    blank = dict(AMOXICILLIN, dosage="   ")
    response = await create(client, doctor, patient, medications=[blank])
    assert response.status_code == 400
    assert await count_rows(Prescription) == 0


async def test_empty_medication_list_is_rejected(client, doctor, patient):
    response = await create(client, doctor, patient, medications=[])
    assert response.status_code == 400
    assert await count_rows(Prescription) == 0


async def test_patient_cannot_prescribe(client, patient):
    response = await create(client, patient, patient)
    assert response.status_code == 403
    assert await count_rows(Prescription) == 0
    assert await count_rows(Notification) == 0


async def test_prescription_for_unknown_patient(client, doctor):
    response = await client.post(
        "/api/prescriptions",
        json={"patientId": str(uuid.uuid4()), "medications": [AMOXICILLIN]},
        headers=auth_headers(doctor),
    )
    assert response.status_code == 404
    assert await count_rows(Prescription) == 0


async def test_listing_is_scoped_by_role(client, doctor, admin, patient, other_patient):
    await create(client, doctor, patient)
    await create(client, admin, other_patient)

    mine = (await client.get("/api/prescriptions", headers=auth_headers(patient))).json()
    assert mine["total"] == 1
    assert mine["prescriptions"][0]["patient_id"] == str(patient.id)

    # A patient asking for someone else's still only gets their own
    forced = (await client.get(
        "/api/prescriptions", params={"patientId": str(other_patient.id)}, headers=auth_headers(patient)
    )).json()
    assert [p["patient_id"] for p in forced["prescriptions"]] == [str(patient.id)]

    written = (await client.get("/api/prescriptions", headers=auth_headers(doctor))).json()
    assert written["total"] == 1
    assert written["prescriptions"][0]["doctor_id"] == str(doctor.id)

    everything = (await client.get("/api/prescriptions", headers=auth_headers(admin))).json()
    assert everything["total"] == 2

    by_patient = (await client.get(
        "/api/prescriptions", params={"patientId": str(other_patient.id)}, headers=auth_headers(doctor)
    )).json()
    assert by_patient["total"] == 1
    assert by_patient["prescriptions"][0]["doctor_name"] == "Ada Admin"


async def test_listing_filters_by_status(client, doctor, patient):
    await create(client, doctor, patient)
    await create(client, doctor, patient, status="draft")

    response = await client.get("/api/prescriptions", params={"status": "draft"}, headers=auth_headers(doctor))
    assert response.json()["total"] == 1
    assert response.json()["prescriptions"][0]["status"] == "draft"


async def test_status_moves_forward_only(client, doctor, patient):
    created = (await create(client, doctor, patient, status="draft")).json()["prescription"]
    url = f"/api/prescriptions/{created['id']}/status"

    activated = await client.patch(url, json={"status": "active"}, headers=auth_headers(doctor))
    assert activated.status_code == 200
    assert activated.json()["prescription"]["status"] == "active"
    assert await count_rows(Notification, Notification.user_id == patient.id) == 1

    back = await client.patch(url, json={"status": "draft"}, headers=auth_headers(doctor))
    assert back.status_code == 400
    assert back.json()["error"] == "Cannot change prescription status from active to draft"

    completed = await client.patch(url, json={"status": "completed"}, headers=auth_headers(doctor))
    assert completed.status_code == 200

    reopened = await client.patch(url, json={"status": "active"}, headers=auth_headers(doctor))
    assert reopened.status_code == 400
    stored = await fetch_one(Prescription, Prescription.id == uuid.UUID(created["id"]))
    assert stored.status == PrescriptionStatus.COMPLETED


async def test_draft_cannot_skip_to_completed(client, doctor, patient):
    created = (await create(client, doctor, patient, status="draft")).json()["prescription"]
    response = await client.patch(
        f"/api/prescriptions/{created['id']}/status", json={"status": "completed"}, headers=auth_headers(doctor)
    )
    assert response.status_code == 400


async def test_patient_cannot_change_status(client, doctor, patient):
    created = (await create(client, doctor, patient)).json()["prescription"]
    response = await client.patch(
        f"/api/prescriptions/{created['id']}/status", json={"status": "completed"}, headers=auth_headers(patient)
    )
    assert response.status_code == 403


async def test_status_of_unknown_prescription(client, doctor):
    response = await client.patch(
        f"/api/prescriptions/{uuid.uuid4()}/status", json={"status": "active"}, headers=auth_headers(doctor)
    )
    assert response.status_code == 404


async def test_suggestions_come_from_the_llm(client, doctor, fake_llm):
    fake_llm.suggestions.append({"dosage": "no name, dropped"})
    response = await client.post(
        "/api/prescriptions/suggest",
        json={"symptoms": "fever, sore throat", "diagnosis": "strep throat"},
        headers=auth_headers(doctor),
    )
    assert response.status_code == 200
    body = response.json()
    assert [s["name"] for s in body["suggestions"]] == ["Amoxicillin"]
    assert body["remaining"] >= 0


async def test_suggestions_are_rate_limited(client, doctor, fake_llm, monkeypatch):
    from src.common.config import settings

    monkeypatch.setattr(settings, "SUGGESTION_RATE_LIMIT", 2)
    payload = {"symptoms": "cough", "diagnosis": "bronchitis"}
    for _ in range(2):
        ok = await client.post("/api/prescriptions/suggest", json=payload, headers=auth_headers(doctor))
        assert ok.status_code == 200

    limited = await client.post("/api/prescriptions/suggest", json=payload, headers=auth_headers(doctor))
    assert limited.status_code == 429
    assert limited.json() == {"error": "Too many requests. Please try again later."}
    assert fake_llm.calls.count("suggest_medications") == 2


async def test_patient_cannot_request_suggestions(client, patient, fake_llm):
    response = await client.post(
        "/api/prescriptions/suggest",
        json={"symptoms": "headache", "diagnosis": "migraine"},
        headers=auth_headers(patient),
    )
    assert response.status_code == 403
    assert fake_llm.calls == []
