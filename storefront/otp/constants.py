from storefront.config.settings import config_settings
from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.otp")

OTP_LENGTH = int(config_settings.OTP_LENGTH)

OTP_EXPIRE_MINUTES = int(config_settings.OTP_EXPIRE_MINUTES)

# rows older than this are purged whether or not they were used
OTP_RETENTION_MINUTES = int(config_settings.OTP_RETENTION_MINUTES)

OTP_PURGE_INTERVAL_SECONDS = int(config_settings.OTP_PURGE_INTERVAL_SECONDS)
