import json
from datetime import datetime, timedelta, timezone
import httpx
from fieldforce.auth.models import CurrentUser
from fieldforce.auth.utils import create_access_token

url_prefix = "/api/v1"

TEST_PASSWORD = "Sup3r-secret!"


class FakeClock:
    """Callable clock the otp manager reads, moved forward by hand."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, seconds: float):
        self.current = self.current + timedelta(seconds=seconds)


class WhatsAppStub:
    """httpx.MockTransport handler standing in for the WhatsApp Cloud API."""

    def __init__(self, status_code: int = 200, body=None, error: Exception = None):
        self.status_code = status_code
        self.body = body
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        body = self.body
        if body is None:
            body = {"messaging_product": "whatsapp",
                    "messages": [{"id": f"wamid.test{len(self.requests)}"}]}
        return httpx.Response(self.status_code, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def payloads(self):
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]

    @property
    def last_code(self) -> str:
        payload = self.payloads()[-1]
        return payload["template"]["components"][0]["parameters"][0]["text"]


def as_actor(user) -> CurrentUser:
    return CurrentUser(id=user.id, public_id=user.public_id, email=user.email,
                       role=user.role.value, full_name=user.full_name)


def auth_headers(user) -> dict:
    token = create_access_token(user_id=user.public_id, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


def wrong_code(code: str) -> str:
    return "100000" if code != "100000" else "100001"
