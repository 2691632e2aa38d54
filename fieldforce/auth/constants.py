from fieldforce.config.settings import config_settings
from fieldforce.common.logging_setup import get_logger

logger = get_logger("fieldforce.auth")

ACCESS_TOKEN_TTL_SECONDS = int(config_settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60
