import pytest_asyncio
from sqlalchemy import select
from fieldforce.db.connection import async_session
from fieldforce.schema.full_schema import Notification
from tests.helpers import auth_headers, url_prefix


@pytest_asyncio.fixture
async def activity(ac_client, seeded, clock, whatsapp_stub):
    """Ravi sends and verifies for one client, Meera sends for another."""
    ravi, meera = auth_headers(seeded.salesman), auth_headers(seeded.other_salesman)
    client_id, second_id = str(seeded.client.public_id), str(seeded.second_client.public_id)

    await ac_client.post(f"{url_prefix}/otp/send", json={"client_id": client_id}, headers=ravi)
    await ac_client.post(f"{url_prefix}/otp/verify", json={"client_id": client_id, "otp": whatsapp_stub.last_code},
                         headers=ravi)
    clock.advance(5)
    await ac_client.post(f"{url_prefix}/otp/send", json={"client_id": second_id}, headers=meera)
    return whatsapp_stub.payloads()


async def test_salesman_only_sees_own_events(ac_client, seeded, activity):
    resp = await ac_client.get(f"{url_prefix}/notifications", headers=auth_headers(seeded.salesman))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 2
    assert data["current_page"] == 1
    assert data["total_pages"] == 1
    assert {n["type"] for n in data["notifications"]} == {"otp_sent", "otp_verified"}
    assert all(n["salesman"]["id"] == str(seeded.salesman.public_id) for n in data["notifications"])

    # a salesman cannot widen the scope through the filter
    resp = await ac_client.get(f"{url_prefix}/notifications",
                               params={"salesman_id": str(seeded.other_salesman.public_id)},
                               headers=auth_headers(seeded.salesman))
    assert resp.json()["data"]["total"] == 2


async def test_admin_sees_everything_and_filters(ac_client, seeded, activity):
    headers = auth_headers(seeded.admin)

    resp = await ac_client.get(f"{url_prefix}/notifications", headers=headers)
    data = resp.json()["data"]
    assert data["total"] == 3
    # newest first
    assert data["notifications"][0]["salesman"]["name"] == "Meera Iyer"

    resp = await ac_client.get(f"{url_prefix}/notifications",
                               params={"salesman_id": str(seeded.other_salesman.public_id)}, headers=headers)
    assert resp.json()["data"]["total"] == 1

    resp = await ac_client.get(f"{url_prefix}/notifications", params={"type": "otp_verified"}, headers=headers)
    events = resp.json()["data"]["notifications"]
    assert len(events) == 1
    assert events[0]["client"] == {"id": str(seeded.client.public_id), "name": "Sharma Traders",
                                   "phone": "98765 43210"}
    assert events[0]["otp"]["is_used"] is True

    resp = await ac_client.get(f"{url_prefix}/notifications", params={"client_id": str(seeded.second_client.public_id)},
                               headers=headers)
    assert resp.json()["data"]["total"] == 1


async def test_pagination(ac_client, seeded, activity):
    headers = auth_headers(seeded.admin)
    resp = await ac_client.get(f"{url_prefix}/notifications", params={"page": 2, "limit": 2}, headers=headers)
    data = resp.json()["data"]
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert data["current_page"] == 2
    assert len(data["notifications"]) == 1

    resp = await ac_client.get(f"{url_prefix}/notifications", params={"limit": 101}, headers=headers)
    assert resp.status_code == 422


async def test_codes_never_leave_the_audit_api(ac_client, seeded, activity):
    resp = await ac_client.get(f"{url_prefix}/notifications", headers=auth_headers(seeded.admin))
    for payload in activity:
        code = payload["template"]["components"][0]["parameters"][0]["text"]
        assert f'"{code}"' not in resp.text
    assert "code_hash" not in resp.text


async def test_unread_count_and_marking(ac_client, seeded, activity):
    ravi = auth_headers(seeded.salesman)
    admin = auth_headers(seeded.admin)

    resp = await ac_client.get(f"{url_prefix}/notifications/unread-count", headers=ravi)
    assert resp.json()["data"] == {"count": 2}
    resp = await ac_client.get(f"{url_prefix}/notifications/unread-count", headers=admin)
    assert resp.json()["data"] == {"count": 3}

    listed = (await ac_client.get(f"{url_prefix}/notifications", headers=ravi)).json()["data"]["notifications"]
    resp = await ac_client.patch(f"{url_prefix}/notifications/{listed[0]['id']}/read", headers=ravi)
    assert resp.status_code == 200
    assert resp.json()["data"]["notification"]["is_read"] is True

    resp = await ac_client.get(f"{url_prefix}/notifications/unread-count", headers=ravi)
    assert resp.json()["data"] == {"count": 1}

    resp = await ac_client.patch(f"{url_prefix}/notifications/read-all", headers=ravi)
    assert resp.json()["data"]["updated"] == 1

    # meera's event is untouched
    resp = await ac_client.get(f"{url_prefix}/notifications/unread-count", headers=admin)
    assert resp.json()["data"] == {"count": 1}


async def test_cannot_mark_someone_elses_event(ac_client, seeded, activity):
    async with async_session() as session:
        res = await session.execute(select(Notification).where(Notification.salesman_id == seeded.other_salesman.id))
        meeras = res.scalars().first()

    resp = await ac_client.patch(f"{url_prefix}/notifications/{meeras.public_id}/read",
                                 headers=auth_headers(seeded.salesman))
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOTIFICATION_NOT_FOUND"

    resp = await ac_client.patch(f"{url_prefix}/notifications/{meeras.public_id}/read",
                                 headers=auth_headers(seeded.admin))
    assert resp.status_code == 200


async def test_notifications_require_auth(ac_client):
    resp = await ac_client.get(f"{url_prefix}/notifications")
    assert resp.status_code == 401
