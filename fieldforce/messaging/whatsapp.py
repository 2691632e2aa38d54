import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
import httpx
from fieldforce.common.retries import retry_async
from fieldforce.config.whatsapp_config import WhatsAppSettings
from fieldforce.messaging.constants import DELIVERY_METHOD_WHATSAPP, logger

_NON_DIGITS = re.compile(r"\D")


@dataclass
class DeliveryResult:
    success: bool
    message_id: Optional[str] = None
    phone_number: Optional[str] = None
    error: Optional[Any] = None
    status_code: Optional[int] = None


def normalize_phone(phone: str, default_country_code: str = "91") -> str:
    """Strip everything but digits, a bare 10 digit number gets the default country code."""
    digits = _NON_DIGITS.sub("", phone or "")
    if len(digits) == 10:
        digits = f"{default_country_code}{digits}"
    return digits


def _error_from_exception(exc: Exception):
    if isinstance(exc, httpx.HTTPStatusError) and exc.response is not None:
        try:
            body = exc.response.json()
        except ValueError:
            body = exc.response.text
        return body, exc.response.status_code
    return str(exc) or type(exc).__name__, None


class WhatsAppDelivery:
    """
    WhatsApp Cloud API client used to deliver otp codes.

    Configuration is injected at construction and only replaced through
    `reconfigure`. Every public call returns a result object, delivery
    problems never raise to the caller.
    """

    channel = DELIVERY_METHOD_WHATSAPP

    def __init__(self, settings: WhatsAppSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> WhatsAppSettings:
        return self._settings

    def reconfigure(self, settings: WhatsAppSettings):
        self._settings = settings
        logger.info("whatsapp.reconfigured", extra={"configured": settings.configured})

    def format_phone_number(self, phone: str) -> str:
        return normalize_phone(phone, self._settings.DEFAULT_COUNTRY_CODE)

    def _messages_url(self) -> str:
        return f"{self._settings.URL.rstrip('/')}/{self._settings.PHONE_NUMBER_ID}/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.TOKEN}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._settings.TIMEOUT_SECONDS, transport=self._transport)

    def build_otp_payload(self, to: str, code: str) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": self._settings.TEMPLATE_NAME,
                "language": {"code": self._settings.TEMPLATE_LANGUAGE},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": code}],
                    },
                    {
                        "type": "button",
                        "sub_type": "url",
                        "index": "0",
                        "parameters": [{"type": "text", "text": code}],
                    },
                ],
            },
        }

    @retry_async(attempts=3, base_delay=0.2, max_delay=1.0)
    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            resp = await client.post(url, json=payload, headers=self._headers())
            resp.raise_for_status()
            return resp.json()

    @retry_async(attempts=3, base_delay=0.2, max_delay=1.0)
    async def _get(self, url: str) -> Dict[str, Any]:
        async with self._client() as client:
            resp = await client.get(url, headers={"Authorization": f"Bearer {self._settings.TOKEN}"})
            resp.raise_for_status()
            return resp.json()

    async def _send_payload(self, payload: Dict[str, Any], event: str) -> DeliveryResult:
        to = payload["to"]
        if not self._settings.configured:
            logger.error(f"{event}.not_configured", extra={"phone": to})
            return DeliveryResult(success=False, phone_number=to,
                                  error="WhatsApp credentials not configured. Set WHATSAPP_TOKEN and WHATSAPP_PHONE_NUMBER_ID")

        try:
            data = await self._post(self._messages_url(), payload)
        except Exception as exc:
            error, status_code = _error_from_exception(exc)
            logger.warning(f"{event}.failed", extra={"phone": to, "status_code": status_code, "error": str(error)})
            return DeliveryResult(success=False, phone_number=to, error=error, status_code=status_code)

        messages = data.get("messages") or [{}]
        message_id = messages[0].get("id")
        logger.info(f"{event}.sent", extra={"phone": to, "message_id": message_id})
        return DeliveryResult(success=True, message_id=message_id, phone_number=to)

    async def send(self, phone: str, code: str, display_name: str = "Valued Customer") -> DeliveryResult:
        """Send the otp template to `phone`. Never raises."""
        to = self.format_phone_number(phone)
        logger.debug("whatsapp.otp.dispatch", extra={"phone": to, "recipient": display_name})
        return await self._send_payload(self.build_otp_payload(to, code), "whatsapp.otp")

    async def send_text(self, phone: str, body: str) -> DeliveryResult:
        to = self.format_phone_number(phone)
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        return await self._send_payload(payload, "whatsapp.text")

    async def get_message_status(self, message_id: str) -> Dict[str, Any]:
        if not self._settings.configured:
            return {"success": False, "error": "WhatsApp credentials not configured"}
        try:
            data = await self._get(f"{self._settings.URL.rstrip('/')}/{message_id}")
        except Exception as exc:
            error, _ = _error_from_exception(exc)
            logger.warning("whatsapp.status.failed", extra={"message_id": message_id, "error": str(error)})
            return {"success": False, "error": error}
        return {"success": True, "status": data.get("status"), "data": data}
