import hashlib
import hmac
import math
import secrets
from datetime import datetime
from fieldforce.common.utils import as_utc
from fieldforce.otp.constants import OTP_MIN, OTP_SPAN


def generate_otp_code() -> str:
    # uniform over 100000..999999
    return str(secrets.randbelow(OTP_SPAN) + OTP_MIN)


def hash_otp(code: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), code.encode("utf-8"), hashlib.sha256).hexdigest()


def otp_matches(code: str, code_hash: str, secret: str) -> bool:
    return hmac.compare_digest(hash_otp(code, secret), code_hash)


def is_expired(record, at: datetime) -> bool:
    return at >= as_utc(record.expires_at)


def is_valid(record, at: datetime, max_attempts: int = 3) -> bool:
    """Unused, not expired and attempts left. Evaluated on every read."""
    return (not record.is_used) and (not is_expired(record, at)) and record.attempts < max_attempts


def seconds_left(record, at: datetime) -> int:
    return max(0, math.floor((as_utc(record.expires_at) - at).total_seconds()))


def resend_wait_seconds(record, at: datetime, cooldown_seconds: int) -> int:
    """Seconds still to wait before another code may be issued, 0 when allowed."""
    elapsed = (at - as_utc(record.created_at)).total_seconds()
    if elapsed >= cooldown_seconds:
        return 0
    return max(1, math.ceil(cooldown_seconds - elapsed))
