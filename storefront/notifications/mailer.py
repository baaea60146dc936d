from datetime import datetime, timezone
from typing import Optional
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from storefront.common.custom_exceptions import DeliveryError
from storefront.common.logging_setup import get_logger
from storefront.config.admin_config import admin_config
from storefront.config.settings import config_settings

logger = get_logger("storefront.notifications")


def render_password_reset_email(store_name: str, code: str, expire_minutes: int) -> str:
    year = datetime.now(timezone.utc).year
    return f"""
    <html>
      <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background-color: #03a9f4; padding: 10px; text-align: center;">
          <h2 style="color: white; margin: 0;">{store_name}</h2>
        </div>
        <div style="padding: 20px; text-align: center;">
          <h3>Password Reset Request</h3>
          <p>Use the following code to reset your password:</p>
          <div style="background-color: #f5f5f5; padding: 15px; font-size: 24px; font-weight: bold; letter-spacing: 5px;">
            {code}
          </div>
          <p>This code expires in {expire_minutes} minutes.</p>
          <p>If you did not request a password reset you can ignore this email.</p>
        </div>
        <p style="text-align: center; color: #666; font-size: 12px;">&copy; {year} {store_name}</p>
      </body>
    </html>
    """


class PasswordResetMailer:
    """Delivers reset codes over SMTP. Every failure surfaces as DeliveryError."""

    def __init__(self, settings=config_settings, env: str = admin_config.ENV):
        self.settings = settings
        self.env = env
        self.fm: Optional[FastMail] = None

        if settings.MAIL_USERNAME and settings.MAIL_FROM:
            conf = ConnectionConfig(
                MAIL_USERNAME=settings.MAIL_USERNAME,
                MAIL_PASSWORD=settings.MAIL_PASSWORD or "",
                MAIL_FROM=settings.MAIL_FROM,
                MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
                MAIL_PORT=settings.MAIL_PORT,
                MAIL_SERVER=settings.MAIL_SERVER,
                MAIL_STARTTLS=settings.MAIL_STARTTLS,
                MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
                USE_CREDENTIALS=True,
            )
            self.fm = FastMail(conf)

    async def send_password_reset_otp(self, email: str, code: str, expire_minutes: int):
        if self.fm is None:
            if self.env == "dev":
                # no smtp in local dev: surface the code in the console instead
                logger.warning("mail.not_configured", extra={"email": email, "otp": code})
                return
            logger.error("mail.not_configured", extra={"email": email})
            raise DeliveryError(details={"reason": "mail_not_configured"})

        message = MessageSchema(
            subject=f"{self.settings.STORE_NAME} - Password Reset OTP",
            recipients=[email],
            body=render_password_reset_email(self.settings.STORE_NAME, code, expire_minutes),
            subtype=MessageType.html,
        )
        try:
            await self.fm.send_message(message)
        except Exception as exc:
            logger.error("mail.send_failed", extra={"email": email, "reason": type(exc).__name__})
            raise DeliveryError(details={"reason": type(exc).__name__}) from exc

        logger.info("mail.password_reset.sent", extra={"email": email})


_mailer: Optional[PasswordResetMailer] = None


def get_password_reset_mailer() -> PasswordResetMailer:
    global _mailer
    if _mailer is None:
        _mailer = PasswordResetMailer()
    return _mailer
