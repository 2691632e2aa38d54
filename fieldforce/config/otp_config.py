from typing import Optional
from pydantic_settings import BaseSettings
from fieldforce.config.admin_config import admin_config
from fieldforce.config.settings import config_settings


class OtpSettings(BaseSettings):
    OTP_TTL_SECONDS: int = 300
    OTP_MAX_ATTEMPTS: int = 3
    OTP_RESEND_COOLDOWN_SECONDS: int = 30
    OTP_DELIVERY_ENABLED: bool = True
    # returns the plain code in the send/resend response, never allowed in prod
    OTP_ECHO_CODE: bool = False
    OTP_THROTTLE_SEND: bool = False
    OTP_HASH_SECRET: Optional[str] = None
    OTP_SEND_RATE_LIMIT: int = 10
    OTP_SEND_RATE_WINDOW: int = 600

    class Config:
        env_file = ".env"
        extra="ignore"

    @property
    def hash_secret(self) -> str:
        return self.OTP_HASH_SECRET or config_settings.JWT_SECRET


def check_otp_settings(settings: OtpSettings, env: str = admin_config.ENV):
    if settings.OTP_ECHO_CODE and env.lower() == "prod":
        raise RuntimeError("Unsafe configuration: OTP_ECHO_CODE=true is not allowed when ENV=prod")


otp_settings = OtpSettings()
