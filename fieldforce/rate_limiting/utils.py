import time
from typing import Optional
from fastapi import Request
from fieldforce.cache._cache import redis_client
from fieldforce.rate_limiting.constants import _in_memory_counters, _in_memory_lock, _script_lock, logger
from fieldforce.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE

_script_sha: Optional[str] = None


async def _ensure_lua_loaded() -> Optional[str]:
    """Load the fixed window script into the redis script cache once, None means use EVAL."""
    global _script_sha
    if _script_sha:
        return _script_sha
    async with _script_lock:
        if _script_sha:
            return _script_sha
        try:
            _script_sha = await redis_client.script_load(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE)
        except Exception as e:
            logger.debug("rate_limit.script_load_failed", extra={"error": str(e)})
            _script_sha = None
        return _script_sha


def _identifier_from_request(request: Request):
    """
    authenticated user id or fallback to ip
    """
    user_identifier = getattr(request.state, "user_identifier", None)
    if user_identifier:
        return str(user_identifier), "user"
    # X-Forwarded-For is trusted only behind a proxy that sets it
    xff = request.headers.get("X-Forwarded-For")
    if xff:
        client_host = xff.split(",")[0].strip()
    else:
        client_host = request.client.host if request.client else "unknown"
    return client_host or "unknown", "ip"


async def _in_memory_allow(key: str, limit: int, window: int):
    """
    Per-process fixed-window counter, only for short redis outages.
    Returns (allowed, remaining, reset_ts).
    """
    async with _in_memory_lock:
        now = int(time.time())
        existing = _in_memory_counters.get(key)
        if not existing or existing["expires_at"] <= now:
            # drop every finished window so the map only holds live keys
            for stale in [k for k, v in _in_memory_counters.items() if v["expires_at"] <= now]:
                del _in_memory_counters[stale]
            _in_memory_counters[key] = {"count": 1, "expires_at": now + window}
            return True, max(0, limit - 1), now + window
        if existing["count"] >= limit:
            return False, 0, existing["expires_at"]
        existing["count"] += 1
        return True, max(0, limit - existing["count"]), existing["expires_at"]
