from fieldforce.common.logging_setup import get_logger

logger = get_logger("fieldforce.notifications")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
