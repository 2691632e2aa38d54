import asyncio
import functools
import random
from typing import Callable, Optional
import httpx
from sqlalchemy.exc import DBAPIError,OperationalError
from fieldforce.common import logger

TRANSIENT_HTTP_EXCEPTIONS = (httpx.ConnectError, httpx.ReadTimeout, httpx.WriteTimeout,
                             httpx.PoolTimeout, httpx.RemoteProtocolError, httpx.NetworkError)


def is_recoverable_exception(exc: BaseException) -> bool:
    if isinstance(exc, asyncio.CancelledError):
        return False
    if isinstance(exc, TRANSIENT_HTTP_EXCEPTIONS):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        # provider side failures only, 4xx are the caller's fault
        return exc.response is not None and 500 <= exc.response.status_code < 600
    if isinstance(exc, (TimeoutError, ConnectionError, OperationalError)):
        return True
    if isinstance(exc, DBAPIError):
        if getattr(exc, "connection_invalidated", False):
            return True
        orig = getattr(exc, "orig", None)
        if orig is not None:
            name = type(orig).__name__.lower()
            if any(k in name for k in ("timeout", "connection", "brokenpipe", "connectionrefused", "connectionreset")):
                return True
    return False

async def _sleep_with_jitter(delay: float, jitter: float) -> None:
    jitter_val = random.uniform(-jitter * delay, jitter * delay)
    await asyncio.sleep(max(0.0, delay + jitter_val))


def retry_async(
    *,
    attempts: int = 3,
    base_delay: float = 0.2,
    factor: float = 2.0,
    max_delay: float = 2.0,
    jitter: float = 0.15,
    if_retryable: Optional[Callable[[BaseException], bool]] = None,
    per_attempt_timeout: Optional[float] = None,
):
    """Retry an async callable on recoverable errors with exponential backoff."""

    if if_retryable is None:
        if_retryable = is_recoverable_exception

    def deco(fn: Callable):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, attempts + 1):
                try:
                    if per_attempt_timeout:
                        return await asyncio.wait_for(fn(*args, **kwargs), timeout=per_attempt_timeout)
                    return await fn(*args, **kwargs)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    try:
                        retryable = if_retryable(exc)
                    except Exception:
                        retryable = False
                    if not retryable or attempt == attempts:
                        raise

                    delay = min(max_delay, base_delay * (factor ** (attempt - 1)))
                    logger.debug("retry.attempt_failed", extra={"attempt": attempt, "delay": delay,
                                                                 "fn": fn.__name__, "error": str(exc)})
                    await _sleep_with_jitter(delay, jitter)
        return wrapper
    return deco
