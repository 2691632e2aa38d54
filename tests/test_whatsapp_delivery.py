import httpx
import pytest
from fieldforce.common import retries
from fieldforce.config.whatsapp_config import WhatsAppSettings
from fieldforce.messaging.whatsapp import WhatsAppDelivery, normalize_phone
from tests.helpers import WhatsAppStub


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    async def _no_sleep(delay, jitter):
        return None
    monkeypatch.setattr(retries, "_sleep_with_jitter", _no_sleep)


@pytest.mark.parametrize("raw,expected", [
    ("9876543210", "919876543210"),
    ("98765 43210", "919876543210"),
    ("(987) 654-3210", "919876543210"),
    ("+91 98765 43210", "919876543210"),
    ("919876543210", "919876543210"),
    ("+1 415 555 0100", "14155550100"),
    ("", ""),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_phone_uses_configured_country_code():
    assert normalize_phone("4155550100", default_country_code="1") == "14155550100"


async def test_send_posts_template_message(whatsapp_settings):
    stub = WhatsAppStub()
    delivery = WhatsAppDelivery(whatsapp_settings, transport=stub.transport())

    result = await delivery.send("98765-43210", "482913", display_name="Sharma Traders")

    assert result.success is True
    assert result.message_id == "wamid.test1"
    assert result.phone_number == "919876543210"

    request = stub.requests[0]
    assert str(request.url) == "https://graph.facebook.com/v22.0/1234567890/messages"
    assert request.headers["Authorization"] == "Bearer test-token"
    payload = stub.payloads()[0]
    assert payload["messaging_product"] == "whatsapp"
    assert payload["to"] == "919876543210"
    assert payload["template"]["name"] == "auth_template"
    assert payload["template"]["language"] == {"code": "en_US"}
    body, button = payload["template"]["components"]
    assert body == {"type": "body", "parameters": [{"type": "text", "text": "482913"}]}
    assert button["type"] == "button"
    assert button["sub_type"] == "url"
    assert button["parameters"] == [{"type": "text", "text": "482913"}]


async def test_server_errors_are_retried_then_reported(whatsapp_settings):
    stub = WhatsAppStub(status_code=503, body={"error": {"message": "Service unavailable"}})
    delivery = WhatsAppDelivery(whatsapp_settings, transport=stub.transport())

    result = await delivery.send("9876543210", "111111")

    assert result.success is False
    assert result.status_code == 503
    assert len(stub.requests) == 3


async def test_client_errors_are_not_retried(whatsapp_settings):
    stub = WhatsAppStub(status_code=400, body={"error": {"message": "Invalid parameter"}})
    delivery = WhatsAppDelivery(whatsapp_settings, transport=stub.transport())

    result = await delivery.send("9876543210", "111111")

    assert result.success is False
    assert result.status_code == 400
    assert result.error == {"error": {"message": "Invalid parameter"}}
    assert len(stub.requests) == 1


async def test_network_errors_never_raise(whatsapp_settings):
    stub = WhatsAppStub(error=httpx.ConnectError("connection refused"))
    delivery = WhatsAppDelivery(whatsapp_settings, transport=stub.transport())

    result = await delivery.send("9876543210", "111111")

    assert result.success is False
    assert result.status_code is None
    assert "connection refused" in result.error
    assert len(stub.requests) == 3


async def test_missing_credentials_skip_the_network():
    stub = WhatsAppStub()
    delivery = WhatsAppDelivery(WhatsAppSettings(TOKEN=None, PHONE_NUMBER_ID=None), transport=stub.transport())

    result = await delivery.send("9876543210", "111111")

    assert result.success is False
    assert "not configured" in result.error
    assert stub.requests == []


async def test_reconfigure_swaps_settings():
    stub = WhatsAppStub()
    delivery = WhatsAppDelivery(WhatsAppSettings(TOKEN=None, PHONE_NUMBER_ID=None), transport=stub.transport())
    assert (await delivery.send("9876543210", "111111")).success is False

    delivery.reconfigure(WhatsAppSettings(TOKEN="rotated", PHONE_NUMBER_ID="555", TEMPLATE_NAME="otp_v2"))
    result = await delivery.send("9876543210", "111111")

    assert result.success is True
    assert stub.requests[0].headers["Authorization"] == "Bearer rotated"
    assert stub.requests[0].url.path.endswith("/555/messages")
    assert stub.payloads()[0]["template"]["name"] == "otp_v2"


async def test_send_text_and_message_status(whatsapp_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"id": "wamid.abc", "status": "delivered"})
        return httpx.Response(200, json={"messages": [{"id": "wamid.abc"}]})

    delivery = WhatsAppDelivery(whatsapp_settings, transport=httpx.MockTransport(handler))

    sent = await delivery.send_text("9876543210", "Your visit is confirmed")
    assert sent.success is True
    assert sent.message_id == "wamid.abc"

    status = await delivery.get_message_status("wamid.abc")
    assert status["success"] is True
    assert status["status"] == "delivered"
