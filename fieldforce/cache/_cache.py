import redis.asyncio as redis
from fieldforce.config.settings import config_settings

REDIS_SOCKET_TIMEOUT = 0.5   # seconds, callers fall back instead of waiting on redis

redis_client = redis.Redis(
    host=config_settings.REDIS_HOST, port=config_settings.REDIS_PORT, db=config_settings.REDIS_DB,
    decode_responses=False, socket_timeout=REDIS_SOCKET_TIMEOUT, socket_connect_timeout=REDIS_SOCKET_TIMEOUT)


async def close_redis():
    await redis_client.aclose()
