from src.models.models import Doctor, User
from tests.conftest import auth_headers, count_rows


async def test_admin_lists_users_by_role(client, admin, doctor, patient, other_patient):
    everyone = (await client.get("/api/users", headers=auth_headers(admin))).json()["users"]
    assert len(everyone) == 4

    patients = (await client.get("/api/users", params={"role": "patient"}, headers=auth_headers(admin))).json()["users"]
    assert {u["id"] for u in patients} == {str(patient.id), str(other_patient.id)}


async def test_only_admins_list_users(client, doctor, patient):
    for actor in (doctor, patient):
        response = await client.get("/api/users", headers=auth_headers(actor))
        assert response.status_code == 403


async def test_admin_provisions_doctor_with_extension_row(client, admin):
    response = await client.post(
        "/api/users/create",
        json={"email": "new.doctor@example.com", "name": "Gregory House", "role": "doctor"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "doctor"
    assert await count_rows(Doctor) == 1


async def test_provisioning_duplicate_email_fails(client, admin, doctor):
    response = await client.post(
        "/api/users/create",
        json={"email": doctor.email, "name": "Copy", "role": "doctor"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "User with this email already exists"}
    assert await count_rows(User, User.email == doctor.email) == 1


async def test_doctor_cannot_provision_accounts(client, doctor):
    response = await client.post(
        "/api/users/create",
        json={"email": "admin2@example.com", "name": "Not Allowed", "role": "admin"},
        headers=auth_headers(doctor),
    )
    assert response.status_code == 403
    assert await count_rows(User, User.email == "admin2@example.com") == 0


async def test_invalid_email_is_rejected(client, admin):
    response = await client.post(
        "/api/users/create",
        json={"email": "not-an-email", "name": "Bad", "role": "patient"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("email")
