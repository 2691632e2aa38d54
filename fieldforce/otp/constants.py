from fieldforce.common.logging_setup import get_logger

logger = get_logger("fieldforce.otp")

OTP_LENGTH = 6
OTP_MIN = 10 ** (OTP_LENGTH - 1)
OTP_SPAN = 9 * OTP_MIN
