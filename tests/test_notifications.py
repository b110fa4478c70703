import uuid

from src.models.models import Notification
from tests.conftest import auth_headers, count_rows, fetch_one


async def notify(client, actor, user, title="Heads up"):
    return await client.post(
        "/api/notifications",
        json={"userId": str(user.id), "type": "system", "title": title, "message": "Something happened"},
        headers=auth_headers(actor),
    )


async def test_admin_notifies_anyone(client, admin, patient):
    response = await notify(client, admin, patient)
    assert response.status_code == 201
    notification = response.json()["notification"]
    assert notification["user_id"] == str(patient.id)
    assert notification["read"] is False


async def test_users_may_notify_themselves(client, doctor):
    response = await notify(client, doctor, doctor, title="Reminder")
    assert response.status_code == 201


async def test_non_admin_cannot_notify_others(client, doctor, patient):
    response = await notify(client, doctor, patient)
    assert response.status_code == 403
    assert response.json() == {"error": "Only admins can notify other users"}
    assert await count_rows(Notification) == 0


async def test_notifying_unknown_user(client, admin):
    response = await client.post(
        "/api/notifications",
        json={"userId": str(uuid.uuid4()), "type": "system", "title": "Hi", "message": "Hello"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 404


async def test_list_shows_only_own_notifications(client, admin, patient, other_patient):
    await notify(client, admin, patient, title="First")
    await notify(client, admin, patient, title="Second")
    await notify(client, admin, other_patient, title="Not yours")

    body = (await client.get("/api/notifications", headers=auth_headers(patient))).json()
    assert body["unread_count"] == 2
    assert {n["title"] for n in body["notifications"]} == {"First", "Second"}


async def test_mark_one_read(client, admin, patient):
    first = (await notify(client, admin, patient, title="First")).json()["notification"]
    await notify(client, admin, patient, title="Second")

    response = await client.patch(f"/api/notifications/{first['id']}/read", headers=auth_headers(patient))
    assert response.status_code == 200
    assert response.json()["notification"]["read"] is True

    # Repeating is harmless
    again = await client.patch(f"/api/notifications/{first['id']}/read", headers=auth_headers(patient))
    assert again.status_code == 200

    unread = (await client.get("/api/notifications", params={"unreadOnly": "true"}, headers=auth_headers(patient))).json()
    assert [n["title"] for n in unread["notifications"]] == ["Second"]
    assert unread["unread_count"] == 1


async def test_cannot_mark_someone_elses_notification(client, admin, patient, other_patient):
    notification = (await notify(client, admin, patient)).json()["notification"]
    response = await client.patch(f"/api/notifications/{notification['id']}/read", headers=auth_headers(other_patient))
    assert response.status_code == 403

    stored = await fetch_one(Notification, Notification.id == uuid.UUID(notification["id"]))
    assert stored.read is False


async def test_mark_unknown_notification(client, patient):
    response = await client.patch(f"/api/notifications/{uuid.uuid4()}/read", headers=auth_headers(patient))
    assert response.status_code == 404


async def test_read_all_is_idempotent(client, admin, patient, other_patient):
    for title in ("One", "Two", "Three"):
        await notify(client, admin, patient, title=title)
    await notify(client, admin, other_patient, title="Untouched")

    first = await client.patch("/api/notifications/read-all", headers=auth_headers(patient))
    assert first.status_code == 200
    assert first.json() == {"success": True, "marked_count": 3, "unread_count": 0}

    second = await client.patch("/api/notifications/read-all", headers=auth_headers(patient))
    assert second.json() == {"success": True, "marked_count": 0, "unread_count": 0}

    assert await count_rows(Notification, Notification.user_id == other_patient.id, Notification.read.is_(False)) == 1
