from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    DATABASE_URL : str
    JWT_SECRET : str
    JWT_ALGO : str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES : int = 720
    PASS_HASH_SCHEME : str = "pbkdf2_sha256"
    REDIS_HOST : str = "localhost"
    REDIS_PORT : int = 6379
    REDIS_DB : int = 0
    RATE_LIMIT_ENABLED : bool = True
    AUTO_CREATE_TABLES : bool = False
    SEED_ADMIN_EMAIL : Optional[str] = None
    SEED_ADMIN_PASSWORD : Optional[str] = None

    class Config:
        env_file = ".env"
        extra="ignore"

config_settings = Settings()
