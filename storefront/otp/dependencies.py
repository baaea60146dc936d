from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.db.dependencies import get_session
from storefront.notifications.mailer import get_password_reset_mailer
from storefront.otp.repository import OtpStore
from storefront.otp.services import OtpManager


def get_otp_manager(session: AsyncSession = Depends(get_session),
                    notifier = Depends(get_password_reset_mailer)) -> OtpManager:
    return OtpManager(OtpStore(session), notifier)
