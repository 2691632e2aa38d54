from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class WhatsAppSettings(BaseSettings):
    """Credentials and template used by the WhatsApp Cloud API delivery client."""

    model_config = SettingsConfigDict(env_prefix="WHATSAPP_", env_file=".env", extra="ignore")

    URL: str = "https://graph.facebook.com/v22.0"
    TOKEN: Optional[str] = None
    PHONE_NUMBER_ID: Optional[str] = None
    TEMPLATE_NAME: str = "auth_template"
    TEMPLATE_LANGUAGE: str = "en_US"
    TIMEOUT_SECONDS: float = 10.0
    DEFAULT_COUNTRY_CODE: str = "91"

    @property
    def configured(self) -> bool:
        return bool(self.TOKEN and self.PHONE_NUMBER_ID)


whatsapp_settings = WhatsAppSettings()
