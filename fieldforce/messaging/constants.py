from fieldforce.common.logging_setup import get_logger

logger = get_logger("fieldforce.messaging")

DELIVERY_METHOD_WHATSAPP = "WhatsApp"
DELIVERY_METHOD_DISABLED = "Disabled"
