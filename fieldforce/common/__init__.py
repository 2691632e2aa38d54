from fieldforce.common.logging_setup import get_logger

logger = get_logger("fieldforce.common")
