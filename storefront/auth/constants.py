from storefront.config.settings import config_settings
from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.auth")

MIN_PASSWORD_LENGTH = int(config_settings.MIN_PASSWORD_LENGTH)

# one message for every forgot-password outcome so callers cannot tell which emails exist
RESET_REQUEST_MESSAGE = "If your email is registered, you will receive a password reset OTP shortly"
