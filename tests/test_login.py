import pytest
from fieldforce.auth.utils import create_access_token
from tests.helpers import TEST_PASSWORD, url_prefix


async def test_login_and_me(ac_client, seeded):
    resp = await ac_client.post(f"{url_prefix}/auth/login",
                                json={"email": "Ravi@Example.com", "password": TEST_PASSWORD})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 720 * 60
    assert data["user"]["role"] == "salesman"

    resp = await ac_client.get(f"{url_prefix}/auth/me",
                               headers={"Authorization": f"Bearer {data['access_token']}"})
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "public_id": str(seeded.salesman.public_id),
        "email": "ravi@example.com",
        "name": "Ravi Kumar",
        "role": "salesman",
    }


@pytest.mark.parametrize("email,password", [
    ("ravi@example.com", "wrong-password"),
    ("nobody@example.com", TEST_PASSWORD),
    ("gone@example.com", TEST_PASSWORD),
])
async def test_login_rejections(ac_client, seeded, email, password):
    resp = await ac_client.post(f"{url_prefix}/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 401
    error = resp.json()["error"]
    assert error["code"] == "INVALID_AUTH"
    assert error["details"]["message"] == "Invalid credentials"


async def test_tokens_of_inactive_or_unknown_users_are_refused(ac_client, seeded):
    token = create_access_token(user_id=seeded.inactive.public_id, role="salesman")
    resp = await ac_client.get(f"{url_prefix}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401

    token = create_access_token(user_id="not-a-uuid", role="salesman")
    resp = await ac_client.get(f"{url_prefix}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_expired_token_is_refused(ac_client, seeded):
    token = create_access_token(user_id=seeded.salesman.public_id, role="salesman", expires_dur=-1)
    resp = await ac_client.get(f"{url_prefix}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["status"] == "error"
